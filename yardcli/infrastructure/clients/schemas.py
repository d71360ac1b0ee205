"""Response shapes of the remote pricing endpoints.

Unknown fields are ignored; missing required fields fail validation and
surface as UNPARSEABLE errors in the clients.
"""

from typing import Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class WireModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


# --- Pricing functions family ---

class QuoteResponse(WireModel):
    price: float
    zone: Optional[Union[int, str]] = None
    distance: Optional[float] = None
    tax: Optional[float] = None

    def zone_number(self) -> Optional[int]:
        """Zone as an int; some deployments send it as a string."""
        if self.zone is None:
            return None
        try:
            return int(self.zone)
        except ValueError:
            return None


class ZoneFees(WireModel):
    trailer: float
    tandem: float


class ZoneTaxInfo(WireModel):
    rate: float # percent, 2.9 == 2.9%
    jurisdiction: Optional[str] = None


class ZoneLookupResponse(WireModel):
    zone: int
    distance: float
    fees: Optional[ZoneFees] = None
    tax_info: Optional[ZoneTaxInfo] = Field(default=None, alias="taxInfo")
    address: Optional[str] = None


class DistanceResponse(WireModel):
    distance: Optional[float] = None
    duration: Optional[float] = None


class TaxLookupResponse(WireModel):
    tax_amount: float = Field(alias="taxAmount")
    tax_rate: float = Field(alias="taxRate")
    total: float
    jurisdiction: Optional[str] = None


# --- External tax provider ---

class ProviderTaxResponse(WireModel):
    rate: float
    tax_amount: Optional[float] = None
    breakdown: Optional[Dict[str, float]] = None


class ProviderRateResponse(WireModel):
    rate: float
    combined_rate: Optional[float] = None
    county: Optional[str] = None
    district: Optional[str] = None
    breakdown: Optional[Dict[str, float]] = None
