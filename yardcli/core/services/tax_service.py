"""Core service for sales tax.

Tax-exempt clients short-circuit to zero tax. Otherwise the rate is taken
from the first source that answers: the remote tax lookup, the tax info
attached to a zone lookup, the external tax provider, the local state rate
table, and finally a flat default rate.
"""

import logging
from typing import Dict, List, Optional

from yardcli.domain.interfaces.pricing_api import DeliveryService, QuoteService, TaxAnswer, TaxProvider
from yardcli.domain.models.common import Dollars, TaxRateFraction
from yardcli.domain.models.pricing import (
    Address, AddressValidation, TaxBreakdown, TaxExemption, TaxRate, TaxResult
)
from yardcli.infrastructure.resilience.fallback_resolver import FallbackResolver, Tier

logger = logging.getLogger(__name__)

DEFAULT_TAX_RATE = TaxRateFraction(0.08)

TIER_TAX_LOOKUP = "tax-lookup"
TIER_ZONE_TAX = "zone-lookup"
TIER_TAX_PROVIDER = "tax-provider"
TIER_STATE_TABLE = "state-table"

# State-level sales tax (approximate 2025 rates); county/city/district not modeled
STATE_TAX_RATES: Dict[str, float] = {
    "AL": 0.04, "AK": 0.0, "AZ": 0.056, "AR": 0.065, "CA": 0.0725,
    "CO": 0.029, "CT": 0.0635, "DE": 0.0, "FL": 0.06, "GA": 0.04,
    "HI": 0.04, "ID": 0.06, "IL": 0.0625, "IN": 0.07, "IA": 0.06,
    "KS": 0.065, "KY": 0.06, "LA": 0.0445, "ME": 0.055, "MD": 0.06,
    "MA": 0.0625, "MI": 0.06, "MN": 0.06875, "MS": 0.07, "MO": 0.04225,
    "MT": 0.0, "NE": 0.055, "NV": 0.0685, "NH": 0.0, "NJ": 0.06625,
    "NM": 0.05125, "NY": 0.04, "NC": 0.0475, "ND": 0.05, "OH": 0.0575,
    "OK": 0.045, "OR": 0.0, "PA": 0.06, "RI": 0.07, "SC": 0.06,
    "SD": 0.045, "TN": 0.07, "TX": 0.0625, "UT": 0.0485, "VT": 0.06,
    "VA": 0.053, "WA": 0.065, "WV": 0.06, "WI": 0.05, "WY": 0.04,
    "DC": 0.06,
}


def state_tax_rate(state: str) -> Optional[TaxRateFraction]:
    """Local table rate for a two-letter state code, None if unknown."""
    rate = STATE_TAX_RATES.get((state or "").strip().upper())
    return TaxRateFraction(rate) if rate is not None else None


def exemption_reason(exemption: TaxExemption) -> str:
    if exemption.certificate_number:
        return f"Tax Exempt (Certificate: {exemption.certificate_number})"
    return "Tax Exempt"


def _money(amount: float) -> Dollars:
    return Dollars(round(amount, 2))


def _breakdown_from(parts: Optional[Dict[str, float]], rate: float) -> TaxBreakdown:
    if not parts:
        return TaxBreakdown(state=TaxRateFraction(rate))
    return TaxBreakdown(
        state=TaxRateFraction(parts.get("state", rate)),
        county=parts.get("county"),
        city=parts.get("city"),
        district=parts.get("district"),
    )


class TaxService:
    """Computes sales tax with graceful degradation."""

    def __init__(
        self,
        quote_service: Optional[QuoteService] = None,
        delivery_service: Optional[DeliveryService] = None,
        tax_provider: Optional[TaxProvider] = None,
        resolver: Optional[FallbackResolver] = None,
        default_rate: float = DEFAULT_TAX_RATE,
    ):
        self.quote_service = quote_service
        self.delivery_service = delivery_service
        self.tax_provider = tax_provider
        self.resolver = resolver or FallbackResolver("tax")
        self.default_rate = TaxRateFraction(default_rate)

    async def calculate_tax(
        self,
        address: Address,
        subtotal: float,
        exemption: Optional[TaxExemption] = None,
    ) -> TaxResult:
        """Calculates tax on subtotal for a delivery address.

        Args:
            address: Delivery (or billing) address.
            subtotal: Taxable amount.
            exemption: Client exemption status, if known.

        Returns:
            Always a TaxResult; the flat default rate is used when nothing answers.
        """
        if exemption is not None and exemption.is_tax_exempt:
            reason = exemption_reason(exemption)
            logger.info(f"Client {exemption.client_name or exemption.client_id or ''} is tax exempt: {reason}")
            return TaxResult(
                subtotal=Dollars(subtotal),
                tax_amount=Dollars(0),
                tax_rate=TaxRateFraction(0),
                total=Dollars(subtotal),
                breakdown=TaxBreakdown(state=TaxRateFraction(0)),
                is_exempt=True,
                exempt_reason=reason,
                source="exemption",
            )

        default = self._computed(subtotal, self.default_rate, TaxBreakdown(state=self.default_rate), "default")
        result = await self.resolver.resolve(self._tax_tiers(address, subtotal), default)
        logger.info(f"Tax for {address.state}: ${result.tax_amount:.2f} at {result.tax_rate:.4%} (source: {result.source})")
        return result

    async def get_tax_rate(self, address: Address) -> TaxRate:
        """Rate for an address without an amount: provider, local table, default."""
        tiers: List[Tier] = []
        if self.tax_provider is not None:
            tiers.append((TIER_TAX_PROVIDER, lambda: self._rate_from_provider(address)))
        tiers.append((TIER_STATE_TABLE, lambda: self._rate_from_table(address)))

        default = TaxRate(
            rate=self.default_rate,
            state=address.state,
            combined_rate=self.default_rate,
            breakdown=TaxBreakdown(state=self.default_rate),
        )
        return await self.resolver.resolve(tiers, default)

    @staticmethod
    def validate_address(address: Address) -> AddressValidation:
        """Requires street, city, state and ZIP; returns a trimmed copy when valid."""
        fields = {
            "street": address.street,
            "city": address.city,
            "state": address.state,
            "zip": address.postal_code,
        }
        missing = [name for name, value in fields.items() if not (value or "").strip()]
        if missing:
            return AddressValidation(valid=False, error=f"Incomplete address (missing: {', '.join(missing)})")

        normalized = Address(
            street=address.street.strip(),
            city=address.city.strip(),
            state=address.state.strip().upper(),
            postal_code=address.postal_code.strip(),
            latitude=address.latitude,
            longitude=address.longitude,
        )
        return AddressValidation(valid=True, normalized=normalized)

    # --- Tiers ---

    def _tax_tiers(self, address: Address, subtotal: float) -> List[Tier]:
        tiers: List[Tier] = []
        if self.quote_service is not None:
            tiers.append((TIER_TAX_LOOKUP, lambda: self._from_tax_lookup(address, subtotal)))
        if self.delivery_service is not None:
            tiers.append((TIER_ZONE_TAX, lambda: self._from_zone_lookup(address, subtotal)))
        if self.tax_provider is not None:
            tiers.append((TIER_TAX_PROVIDER, lambda: self._from_provider(address, subtotal)))
        tiers.append((TIER_STATE_TABLE, lambda: self._from_state_table(address, subtotal)))
        return tiers

    async def _from_tax_lookup(self, address: Address, subtotal: float) -> TaxResult:
        answer = await self.quote_service.lookup_tax(address, subtotal)
        return self._from_answer(subtotal, answer, TIER_TAX_LOOKUP)

    async def _from_zone_lookup(self, address: Address, subtotal: float) -> Optional[TaxResult]:
        zone = await self.delivery_service.lookup_zone(address)
        if zone is None or zone.tax_rate_percent is None:
            return None
        rate = TaxRateFraction(zone.tax_rate_percent / 100)
        return self._computed(subtotal, rate, TaxBreakdown(state=rate), TIER_ZONE_TAX, zone.tax_jurisdiction)

    async def _from_provider(self, address: Address, subtotal: float) -> TaxResult:
        answer = await self.tax_provider.calculate(address, subtotal)
        return self._from_answer(subtotal, answer, TIER_TAX_PROVIDER)

    def _from_state_table(self, address: Address, subtotal: float) -> Optional[TaxResult]:
        rate = state_tax_rate(address.state)
        if rate is None:
            return None
        return self._computed(subtotal, rate, TaxBreakdown(state=rate), TIER_STATE_TABLE, address.state.upper())

    async def _rate_from_provider(self, address: Address) -> TaxRate:
        answer = await self.tax_provider.get_rates(address)
        return TaxRate(
            rate=TaxRateFraction(answer.rate),
            state=address.state,
            combined_rate=TaxRateFraction(answer.combined_rate),
            breakdown=_breakdown_from(answer.breakdown, answer.rate),
            county=answer.county,
            city=address.city,
            district=answer.district,
        )

    @staticmethod
    def _rate_from_table(address: Address) -> Optional[TaxRate]:
        rate = state_tax_rate(address.state)
        if rate is None:
            return None
        return TaxRate(rate=rate, state=address.state, combined_rate=rate,
                       breakdown=TaxBreakdown(state=rate), city=address.city)

    # --- Result builders ---

    @staticmethod
    def _computed(subtotal: float, rate: TaxRateFraction, breakdown: TaxBreakdown,
                  source: str, jurisdiction: Optional[str] = None) -> TaxResult:
        tax_amount = _money(subtotal * rate)
        return TaxResult(
            subtotal=Dollars(subtotal),
            tax_amount=tax_amount,
            tax_rate=rate,
            total=_money(subtotal + tax_amount),
            breakdown=breakdown,
            jurisdiction=jurisdiction,
            source=source,
        )

    @staticmethod
    def _from_answer(subtotal: float, answer: TaxAnswer, source: str) -> TaxResult:
        return TaxResult(
            subtotal=Dollars(subtotal),
            tax_amount=Dollars(answer.tax_amount),
            tax_rate=TaxRateFraction(answer.tax_rate),
            total=Dollars(answer.total),
            breakdown=_breakdown_from(answer.breakdown, answer.tax_rate),
            jurisdiction=answer.jurisdiction,
            source=source,
        )
