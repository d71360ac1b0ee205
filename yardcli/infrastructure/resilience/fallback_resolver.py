"""Cascading fallback over an ordered list of computation tiers.

Each tier is a named zero-argument callable (sync or async). Tiers are tried
strictly in order; the first one that returns a non-None value without
raising wins. Failed tiers are logged and recorded, never surfaced. When
every tier fails the caller-supplied default is returned.
"""

import inspect
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Generic, List, Optional, Sequence, Tuple, TypeVar

from yardcli.domain.events.api_events import DomainEvent, EventSink, FallbackExhausted, TierFailed

logger = logging.getLogger(__name__)

T = TypeVar("T")

# A tier returns T, None, or an awaitable of either
TierCallable = Callable[[], Any]
Tier = Tuple[str, TierCallable]

DEFAULT_TIER_NAME = "default"


@dataclass
class TierFailure:
    tier: str
    reason: str # 'empty' or 'error'
    error: Optional[BaseException] = None


@dataclass
class Resolution(Generic[T]):
    """Value produced by a resolver run plus where it came from."""
    value: T
    tier: str
    failures: List[TierFailure] = field(default_factory=list)

    @property
    def used_default(self) -> bool:
        return self.tier == DEFAULT_TIER_NAME


def _log_event(event: DomainEvent) -> None:
    logger.debug(f"EVENT: {event}")


class FallbackResolver:
    """Evaluates tiers in order and returns the first usable value."""

    def __init__(self, chain_name: str = "fallback", event_sink: Optional[EventSink] = None):
        self.chain_name = chain_name
        self._dispatch = event_sink or _log_event

    async def resolve(self, tiers: Sequence[Tier], default: T) -> T:
        """Returns the first tier's non-None value, or `default` when all fail."""
        resolution = await self.resolve_with_source(tiers, default)
        return resolution.value

    async def resolve_with_source(self, tiers: Sequence[Tier], default: T) -> Resolution[T]:
        """Like resolve, but also reports the winning tier and recorded failures.

        Args:
            tiers: Ordered (name, callable) pairs. Later tiers are not evaluated
                once one succeeds.
            default: Value returned when every tier fails. Must not be None.

        Returns:
            A Resolution whose `tier` is the winning tier name, or "default".
        """
        if default is None:
            raise ValueError("FallbackResolver requires a non-None default")

        failures: List[TierFailure] = []

        for name, tier in tiers:
            try:
                value = tier()
                if inspect.isawaitable(value):
                    value = await value
            except Exception as e:
                logger.warning(f"[{self.chain_name}] Tier '{name}' failed: {type(e).__name__}: {e}")
                failures.append(TierFailure(name, "error", e))
                self._dispatch(TierFailed(chain=self.chain_name, tier=name, reason="error", error=e))
                continue

            if value is None:
                logger.warning(f"[{self.chain_name}] Tier '{name}' returned no result")
                failures.append(TierFailure(name, "empty"))
                self._dispatch(TierFailed(chain=self.chain_name, tier=name, reason="empty"))
                continue

            logger.info(f"[{self.chain_name}] Resolved by tier '{name}'")
            return Resolution(value=value, tier=name, failures=failures)

        logger.error(f"[{self.chain_name}] All {len(tiers)} tiers failed, using default")
        self._dispatch(FallbackExhausted(chain=self.chain_name, tiers_attempted=len(tiers)))
        return Resolution(value=default, tier=DEFAULT_TIER_NAME, failures=failures)
