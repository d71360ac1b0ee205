import pytest
from unittest.mock import AsyncMock, MagicMock

from yardcli.domain.events.api_events import FallbackExhausted, TierFailed
from yardcli.infrastructure.resilience.fallback_resolver import FallbackResolver


@pytest.fixture
def resolver(events):
    return FallbackResolver("test-chain", event_sink=events.append)


@pytest.mark.asyncio
async def test_first_success_short_circuits(resolver):
    """Later tiers are never evaluated once one succeeds."""
    second = MagicMock(return_value="second")
    tiers = [("first", lambda: "first"), ("second", second)]

    assert await resolver.resolve(tiers, "default") == "first"
    second.assert_not_called()


@pytest.mark.asyncio
async def test_none_and_exceptions_fall_through(resolver, events):
    def broken():
        raise RuntimeError("service down")

    third = AsyncMock(return_value=42)
    tiers = [("empty", lambda: None), ("broken", broken), ("async", third)]

    resolution = await resolver.resolve_with_source(tiers, 0)

    assert resolution.value == 42
    assert resolution.tier == "async"
    assert not resolution.used_default
    assert [(f.tier, f.reason) for f in resolution.failures] == [("empty", "empty"), ("broken", "error")]
    assert isinstance(resolution.failures[1].error, RuntimeError)
    third.assert_awaited_once()
    assert [type(e) for e in events] == [TierFailed, TierFailed]


@pytest.mark.asyncio
async def test_all_tiers_failing_returns_default(resolver, events):
    failing = AsyncMock(side_effect=ValueError("bad payload"))
    tiers = [("a", failing), ("b", lambda: None)]

    resolution = await resolver.resolve_with_source(tiers, {"fee": 10})

    assert resolution.value == {"fee": 10}
    assert resolution.used_default
    assert isinstance(events[-1], FallbackExhausted)
    assert events[-1].tiers_attempted == 2


@pytest.mark.asyncio
async def test_falsy_values_count_as_success(resolver):
    """Only None means 'no result'; zero is a real answer."""
    assert await resolver.resolve([("zero", lambda: 0.0)], 0.08) == 0.0


@pytest.mark.asyncio
async def test_empty_tier_list_returns_default(resolver):
    assert await resolver.resolve([], "fallback") == "fallback"


@pytest.mark.asyncio
async def test_none_default_is_rejected(resolver):
    with pytest.raises(ValueError):
        await resolver.resolve([("a", lambda: 1)], None)
