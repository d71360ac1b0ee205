"""Infrastructure Layer: Contains concrete implementations and adapters.

Connects the application to the outside world (remote pricing functions,
tax provider, configuration files, the console) by implementing the
interfaces defined in the domain layer.
"""
