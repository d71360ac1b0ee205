"""Interfaces for the remote pricing services.

Defines the contracts the pricing orchestrators call for quotes, zone
lookups, distances and tax. Implementations raise on failure; returning
None means "the service answered but had nothing usable".
"""

import abc
from dataclasses import dataclass
from typing import Dict, Optional

from ..models.pricing import Address

# --- Normalized service answers ---

@dataclass(frozen=True)
class QuoteAnswer:
    price: float
    zone: Optional[int] = None
    distance_miles: Optional[float] = None
    tax: Optional[float] = None

@dataclass(frozen=True)
class ZoneAnswer:
    zone: int
    distance_miles: float
    standard_fee: float
    heavy_fee: float
    tax_rate_percent: Optional[float] = None
    tax_jurisdiction: Optional[str] = None
    formatted_address: Optional[str] = None

@dataclass(frozen=True)
class DistanceAnswer:
    distance_miles: float
    duration_minutes: Optional[float] = None

@dataclass(frozen=True)
class TaxAnswer:
    tax_amount: float
    tax_rate: float
    total: float
    jurisdiction: Optional[str] = None
    breakdown: Optional[Dict[str, float]] = None

@dataclass(frozen=True)
class RateAnswer:
    rate: float
    combined_rate: float
    county: Optional[str] = None
    district: Optional[str] = None
    breakdown: Optional[Dict[str, float]] = None


class QuoteService(abc.ABC):
    """Full delivery quote and tax lookup (the primary pricing functions)."""

    @abc.abstractmethod
    async def calculate_quote(self, origin: Address, destination: Address, weight: float = 0) -> QuoteAnswer:
        """Prices a delivery from origin to destination."""
        pass

    @abc.abstractmethod
    async def lookup_tax(self, address: Address, amount: float) -> TaxAnswer:
        """Computes sales tax on amount for the given address."""
        pass


class DeliveryService(abc.ABC):
    """Zone lookup and route distance."""

    @abc.abstractmethod
    async def lookup_zone(self, address: Address) -> Optional[ZoneAnswer]:
        """Resolves the delivery zone, both fees and tax info for an address.

        Returns:
            None when the service replied without fee data.
        """
        pass

    @abc.abstractmethod
    async def calculate_distance(self, origin: Address, destination: Address) -> Optional[DistanceAnswer]:
        """Driving distance (miles) and duration (minutes)."""
        pass


class TaxProvider(abc.ABC):
    """Third-party sales tax provider."""

    @abc.abstractmethod
    async def calculate(self, address: Address, amount: float) -> TaxAnswer:
        pass

    @abc.abstractmethod
    async def get_rates(self, address: Address) -> RateAnswer:
        pass


class HealthCheckable(abc.ABC):
    """Anything exposing a boolean liveness probe."""

    @abc.abstractmethod
    async def health_check(self) -> bool:
        pass
