"""Domain Events related to remote pricing calls and fallback resolution.

Examples include events for when calls are started, retried, fail, or
succeed, and for when a fallback tier fails or the whole chain is exhausted.
"""

from dataclasses import dataclass, field
import time
from typing import Any, Callable, Optional

# Base Event Class
@dataclass
class DomainEvent:
    """Base class for domain events."""
    pass

EventSink = Callable[[DomainEvent], None]

# --- Remote call events ---

@dataclass
class ApiCallInitiated(DomainEvent):
    """Event triggered when a request attempt is about to be sent."""
    service: str # base URL of the endpoint family
    endpoint: str
    attempt_number: int = 1
    timestamp: float = field(default_factory=time.time)

@dataclass
class ApiCallSucceeded(DomainEvent):
    """Event triggered when a request succeeds."""
    service: str
    endpoint: str
    status_code: int
    latency_ms: float
    timestamp: float = field(default_factory=time.time)

@dataclass
class ApiCallFailed(DomainEvent):
    """Event triggered when a request fails definitively (after retries)."""
    service: str
    endpoint: str
    error_kind: str
    error_message: str
    status: Optional[int] = None
    attempts: int = 1
    timestamp: float = field(default_factory=time.time)

@dataclass
class RetryScheduled(DomainEvent):
    """Event triggered when a retry is scheduled for a failed request."""
    service: str
    endpoint: str
    attempt_number: int
    delay_seconds: float
    error_kind: str
    timestamp: float = field(default_factory=time.time)

# --- Fallback events ---

@dataclass
class TierFailed(DomainEvent):
    """Event triggered when one fallback tier raises or yields nothing."""
    chain: str # e.g., 'delivery-fee', 'tax'
    tier: str
    reason: str
    error: Optional[Any] = None
    timestamp: float = field(default_factory=time.time)

@dataclass
class FallbackExhausted(DomainEvent):
    """Event triggered when every tier failed and the static default is used."""
    chain: str
    tiers_attempted: int
    timestamp: float = field(default_factory=time.time)
