"""Concrete clients for the pricing functions and the external tax provider.

Implements the domain pricing interfaces on top of RequestExecutor. The
executor reports failures as ApiError values; these clients raise them as
PricingApiError so fallback tiers can simply fail.
"""

import asyncio
import logging
from typing import Any, Dict, Mapping, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from yardcli.domain.interfaces.pricing_api import (
    DeliveryService, DistanceAnswer, HealthCheckable, QuoteAnswer, QuoteService,
    RateAnswer, TaxAnswer, TaxProvider, ZoneAnswer
)
from yardcli.domain.models.api import ApiError, ApiErrorKind, RequestSpec
from yardcli.domain.models.pricing import Address
from yardcli.infrastructure.clients.schemas import (
    DistanceResponse, ProviderRateResponse, ProviderTaxResponse, QuoteResponse,
    TaxLookupResponse, ZoneLookupResponse
)
from yardcli.infrastructure.resilience.request_executor import RequestExecutor

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


class PricingApiError(Exception):
    """A remote pricing call failed. Wraps the normalized ApiError."""

    def __init__(self, error: ApiError, endpoint: Optional[str] = None):
        self.error = error
        self.endpoint = endpoint
        prefix = f"{endpoint}: " if endpoint else ""
        super().__init__(f"{prefix}{error}")

    @property
    def kind(self) -> ApiErrorKind:
        return self.error.kind

    @property
    def status(self) -> Optional[int]:
        return self.error.status


def _postal_fields(address: Address) -> Dict[str, str]:
    return {"street": address.street, "city": address.city, "state": address.state, "zip": address.postal_code}


class EndpointClient(HealthCheckable):
    """Shared plumbing: path table, request execution and response validation."""

    DEFAULT_PATHS: Mapping[str, str] = {}

    def __init__(self, executor: RequestExecutor, paths: Optional[Mapping[str, str]] = None):
        self.executor = executor
        self.paths: Dict[str, str] = {**self.DEFAULT_PATHS, **(paths or {})}

    async def _post(self, endpoint: str, body: Any, model: Type[M]) -> M:
        outcome = await self.executor.execute(RequestSpec.post(self.paths[endpoint], body=body))
        if isinstance(outcome, ApiError):
            raise PricingApiError(outcome, endpoint)
        return self._validate(endpoint, outcome.data, model)

    @staticmethod
    def _validate(endpoint: str, data: Any, model: Type[M]) -> M:
        if not isinstance(data, dict):
            raise PricingApiError(
                ApiError(ApiErrorKind.UNPARSEABLE, f"Expected a JSON object, got {type(data).__name__}", details=data),
                endpoint,
            )
        try:
            return model.model_validate(data)
        except ValidationError as e:
            logger.warning(f"Unexpected response shape from {endpoint}: {e.error_count()} validation error(s)")
            raise PricingApiError(
                ApiError(ApiErrorKind.UNPARSEABLE, f"Unexpected response shape for {model.__name__}", details=e.errors()),
                endpoint,
            ) from e

    async def health_check(self) -> bool:
        return await self.executor.health_check()


class QuoteApiClient(EndpointClient, QuoteService):
    """Full quote and tax lookup functions."""

    DEFAULT_PATHS = {
        "quote-calculation": "/calculate-quote",
        "tax-lookup": "/tax-lookup",
    }

    async def calculate_quote(self, origin: Address, destination: Address, weight: float = 0) -> QuoteAnswer:
        body = {"origin": origin.to_payload(), "destination": destination.to_payload(), "weight": weight}
        response = await self._post("quote-calculation", body, QuoteResponse)
        return QuoteAnswer(
            price=response.price,
            zone=response.zone_number(),
            distance_miles=response.distance,
            tax=response.tax,
        )

    async def lookup_tax(self, address: Address, amount: float) -> TaxAnswer:
        body = {"address": address.to_payload(), "amount": amount}
        response = await self._post("tax-lookup", body, TaxLookupResponse)
        return TaxAnswer(
            tax_amount=response.tax_amount,
            tax_rate=response.tax_rate,
            total=response.total,
            jurisdiction=response.jurisdiction,
        )


class DeliveryApiClient(EndpointClient, DeliveryService):
    """Zone lookup and distance functions."""

    DEFAULT_PATHS = {
        "zone-lookup": "/zone-lookup",
        "distance-calculation": "/calculate-distance",
    }

    async def lookup_zone(self, address: Address) -> Optional[ZoneAnswer]:
        response = await self._post("zone-lookup", {"address": address.to_payload()}, ZoneLookupResponse)
        if response.fees is None:
            logger.warning(f"Zone lookup for {address.one_line()} returned no fees")
            return None

        tax_info = response.tax_info
        return ZoneAnswer(
            zone=response.zone,
            distance_miles=response.distance,
            standard_fee=response.fees.trailer,
            heavy_fee=response.fees.tandem,
            tax_rate_percent=tax_info.rate if tax_info else None,
            tax_jurisdiction=tax_info.jurisdiction if tax_info else None,
            formatted_address=response.address,
        )

    async def calculate_distance(self, origin: Address, destination: Address) -> Optional[DistanceAnswer]:
        body = {"origin": origin.to_payload(), "destination": destination.to_payload()}
        response = await self._post("distance-calculation", body, DistanceResponse)
        if not response.distance:
            logger.warning(f"Distance calculation to {destination.one_line()} returned no distance")
            return None
        return DistanceAnswer(distance_miles=response.distance, duration_minutes=response.duration)


class TaxProviderClient(EndpointClient, TaxProvider):
    """Third-party sales tax API (TaxJar/Avalara style)."""

    DEFAULT_PATHS = {
        "calculate": "/calculate",
        "rates": "/rates",
    }

    async def calculate(self, address: Address, amount: float) -> TaxAnswer:
        body = {"to_address": _postal_fields(address), "amount": amount}
        response = await self._post("calculate", body, ProviderTaxResponse)
        tax_amount = response.tax_amount or amount * response.rate
        return TaxAnswer(
            tax_amount=tax_amount,
            tax_rate=response.rate,
            total=amount + tax_amount,
            breakdown=response.breakdown or {"state": response.rate},
        )

    async def get_rates(self, address: Address) -> RateAnswer:
        response = await self._post("rates", _postal_fields(address), ProviderRateResponse)
        return RateAnswer(
            rate=response.rate,
            combined_rate=response.combined_rate or response.rate,
            county=response.county,
            district=response.district,
            breakdown=response.breakdown or {"state": response.rate},
        )


async def check_available_services(services: Mapping[str, HealthCheckable]) -> Dict[str, bool]:
    """Probes every service concurrently. Unconfigured services are simply absent."""
    names = list(services)
    results = await asyncio.gather(*(services[name].health_check() for name in names))
    status = dict(zip(names, results))
    logger.info(f"Service availability: {status}")
    return status
