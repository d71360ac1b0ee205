"""Remote Call Resilience Implementations.

Contains the request executor (per-attempt deadline, retries with
exponential backoff, error normalization) and the cascading fallback
resolver used by the pricing services.
Bounded Context: API Resilience
"""
