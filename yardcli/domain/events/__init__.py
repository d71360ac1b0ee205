"""Domain Event definitions.

Represents remote call attempts and fallback tier outcomes. Executors and
resolvers hand these to an optional event sink and always log them.
"""
