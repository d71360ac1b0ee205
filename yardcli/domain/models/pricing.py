"""Domain models for delivery and tax pricing.

Includes the inputs (addresses, materials, line items) and the typed
results handed back to callers for display and invoicing.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .common import Dollars, Miles, Minutes, TaxRateFraction, UnitOfMeasure, VehicleType

# --- Inputs ---

@dataclass(frozen=True)
class Address:
    """Postal address, optionally geocoded. Never mutated."""
    street: str
    city: str
    state: str
    postal_code: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    def to_payload(self) -> Dict[str, Any]:
        """Wire representation expected by the pricing services."""
        payload: Dict[str, Any] = {
            "street": self.street,
            "city": self.city,
            "state": self.state,
            "zip": self.postal_code,
        }
        if self.latitude is not None and self.longitude is not None:
            payload["latitude"] = self.latitude
            payload["longitude"] = self.longitude
        return payload

    def one_line(self) -> str:
        return f"{self.street}, {self.city}, {self.state} {self.postal_code}"


@dataclass(frozen=True)
class Material:
    """A catalog material as far as pricing cares about it."""
    name: str
    unit: UnitOfMeasure
    category: Optional[str] = None
    material_id: Optional[str] = None


@dataclass(frozen=True)
class LineItem:
    """One order line. net_weight_lbs is the scale ticket weight, if any."""
    material: Optional[Material]
    quantity: float
    net_weight_lbs: Optional[float] = None


@dataclass(frozen=True)
class TaxExemption:
    """Tax-exempt status of the purchasing client."""
    is_tax_exempt: bool = False
    certificate_number: Optional[str] = None
    client_id: Optional[str] = None
    client_name: Optional[str] = None


# --- Zones ---

@dataclass(frozen=True)
class Zone:
    """One row of the delivery zone table."""
    zone_number: int
    min_miles: float
    max_miles: float
    standard_fee: Dollars


@dataclass(frozen=True)
class ZoneRating:
    """Zone and both candidate fees for a distance."""
    zone: int
    standard_fee: Dollars
    heavy_fee: Dollars
    min_miles: float
    max_miles: float

    def fee_for(self, vehicle_type: VehicleType) -> Dollars:
        return self.heavy_fee if vehicle_type is VehicleType.HEAVY else self.standard_fee


# --- Results ---

@dataclass(frozen=True)
class FeeBreakdown:
    base_fee: Dollars
    distance_fee: Dollars
    zone_fee: Dollars
    total: Dollars


@dataclass(frozen=True)
class DeliveryFeeResult:
    """Delivery fee with the context it was computed from."""
    fee: Dollars
    breakdown: FeeBreakdown
    zone: Optional[int] = None
    distance_miles: Optional[Miles] = None
    duration_minutes: Optional[Minutes] = None
    vehicle_type: Optional[VehicleType] = None
    source: str = "default"


@dataclass(frozen=True)
class TaxBreakdown:
    state: TaxRateFraction
    county: Optional[TaxRateFraction] = None
    city: Optional[TaxRateFraction] = None
    district: Optional[TaxRateFraction] = None

    def to_dict(self) -> Dict[str, float]:
        parts = {"state": self.state, "county": self.county, "city": self.city, "district": self.district}
        return {name: rate for name, rate in parts.items() if rate is not None}


@dataclass(frozen=True)
class TaxResult:
    subtotal: Dollars
    tax_amount: Dollars
    tax_rate: TaxRateFraction
    total: Dollars
    breakdown: TaxBreakdown
    is_exempt: bool = False
    exempt_reason: Optional[str] = None
    jurisdiction: Optional[str] = None
    source: str = "default"


@dataclass(frozen=True)
class TaxRate:
    """Tax rate for an address without an amount applied."""
    rate: TaxRateFraction
    state: str
    combined_rate: TaxRateFraction
    breakdown: TaxBreakdown
    county: Optional[str] = None
    city: Optional[str] = None
    district: Optional[str] = None


@dataclass(frozen=True)
class AddressValidation:
    valid: bool
    normalized: Optional[Address] = None
    error: Optional[str] = None


@dataclass(frozen=True)
class OrderQuote:
    """Fee and tax for a single order, priced together."""
    subtotal: Dollars
    delivery: DeliveryFeeResult
    tax: TaxResult
    grand_total: Dollars
    line_items: List[LineItem] = field(default_factory=list)
