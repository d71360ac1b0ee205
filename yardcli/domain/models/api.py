"""Domain models for talking to remote pricing services.

Covers endpoint configuration, the request description handed to an
executor, and the success/error envelopes it hands back. Errors are plain
values here; only the endpoint clients turn them into exceptions.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Generic, TypeVar

T = TypeVar("T")

DEFAULT_TIMEOUT_MS = 30000
DEFAULT_MAX_RETRIES = 3


@dataclass(frozen=True)
class ClientConfig:
    """Immutable configuration for one remote endpoint family."""
    base_url: str
    api_key: Optional[str] = None
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    max_retries: int = DEFAULT_MAX_RETRIES
    headers: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self):
        if not self.base_url:
            raise ValueError("ClientConfig.base_url must not be empty")
        if self.timeout_ms <= 0:
            raise ValueError(f"ClientConfig.timeout_ms must be positive, got {self.timeout_ms}")
        if self.max_retries < 0:
            raise ValueError(f"ClientConfig.max_retries must be >= 0, got {self.max_retries}")
        # Snapshot caller's dict so later mutation can't leak in
        object.__setattr__(self, "headers", dict(self.headers))


@dataclass(frozen=True)
class RequestSpec:
    """A single logical request: method, path, query and optional JSON body."""
    method: str
    path: str = ""
    params: Optional[Mapping[str, Any]] = None
    body: Optional[Any] = None
    headers: Optional[Mapping[str, str]] = None

    @classmethod
    def get(cls, path: str, params: Optional[Mapping[str, Any]] = None) -> "RequestSpec":
        return cls("GET", path, params=params)

    @classmethod
    def post(cls, path: str, body: Any = None, params: Optional[Mapping[str, Any]] = None) -> "RequestSpec":
        return cls("POST", path, params=params, body=body)

    def query_params(self) -> Dict[str, str]:
        """Query parameters with None values dropped and values stringified."""
        if not self.params:
            return {}
        serialized = {}
        for key, value in self.params.items():
            if value is None:
                continue
            if isinstance(value, bool):
                serialized[key] = "true" if value else "false"
            else:
                serialized[key] = str(value)
        return serialized


@dataclass
class ApiResult(Generic[T]):
    """Success envelope returned by RequestExecutor.execute."""
    data: T
    status_code: int
    status_text: str
    headers: Dict[str, str] = field(default_factory=dict)


class ApiErrorKind(str, Enum):
    TIMEOUT = "timeout"
    CLIENT_ERROR = "client_error"
    SERVER_ERROR = "server_error"
    NETWORK_FAILURE = "network_failure"
    UNPARSEABLE = "unparseable"


# Kinds worth another attempt; client errors and bad payloads are final.
RETRYABLE_KINDS = frozenset({
    ApiErrorKind.TIMEOUT,
    ApiErrorKind.SERVER_ERROR,
    ApiErrorKind.NETWORK_FAILURE,
})


@dataclass(frozen=True)
class ApiError:
    """Normalized failure of a remote call."""
    kind: ApiErrorKind
    message: str
    status: Optional[int] = None
    code: Optional[str] = None
    details: Any = None

    @property
    def retryable(self) -> bool:
        return self.kind in RETRYABLE_KINDS

    @classmethod
    def timeout(cls, timeout_ms: int) -> "ApiError":
        return cls(ApiErrorKind.TIMEOUT, f"Request timeout after {timeout_ms}ms", code="TIMEOUT")

    @classmethod
    def from_status(cls, status: int, message: str, code: Optional[str] = None, details: Any = None) -> "ApiError":
        kind = ApiErrorKind.CLIENT_ERROR if 400 <= status < 500 else ApiErrorKind.SERVER_ERROR
        return cls(kind, message, status=status, code=code, details=details)

    def __str__(self) -> str:
        status = f" {self.status}" if self.status is not None else ""
        return f"{self.kind.value}{status}: {self.message}"


@dataclass
class RetryState:
    """Attempt bookkeeping for one logical call."""
    attempt: int = 0
    last_error: Optional[ApiError] = None
