"""Domain models: value objects, request/response envelopes and pricing results."""
