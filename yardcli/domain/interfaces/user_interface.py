"""Interface for interacting with the user (output only).

Defines the contract for displaying pricing results, tables, errors and
warnings, allowing different UI implementations (e.g., console, JSON).
"""

import abc
from typing import Any, Dict, List

from yardcli.domain.models.pricing import DeliveryFeeResult, OrderQuote, TaxResult, Zone, ZoneRating
from yardcli.domain.models.common import VehicleType

class UserInterface(abc.ABC):
    """Abstract Base Class for user interaction."""

    @abc.abstractmethod
    def display_output(self, output: str, **kwargs: Any) -> None:
        """Displays standard output to the user.

        Args:
            output: The text to display.
            **kwargs: Additional arguments for formatting (e.g., title, style).
        """
        pass

    @abc.abstractmethod
    def display_error(self, error_message: str, **kwargs: Any) -> None:
        """Displays an error message to the user."""
        pass

    @abc.abstractmethod
    def display_warning(self, warning_message: str, **kwargs: Any) -> None:
        """Displays a warning message to the user."""
        pass

    @abc.abstractmethod
    def display_info(self, info_message: str, **kwargs: Any) -> None:
        """Displays an informational message to the user."""
        pass

    @abc.abstractmethod
    def display_delivery_fee(self, result: DeliveryFeeResult) -> None:
        """Renders a delivery fee and its breakdown."""
        pass

    @abc.abstractmethod
    def display_tax(self, result: TaxResult) -> None:
        """Renders a tax calculation and its breakdown."""
        pass

    def display_order_quote(self, quote: OrderQuote) -> None:
        """Renders fee, tax and grand total for an order.

        Default implementation reuses the single-result renderers.
        """
        self.display_delivery_fee(quote.delivery)
        self.display_tax(quote.tax)
        self.display_output(f"Grand total: ${quote.grand_total:,.2f}")

    def display_zone_rating(self, distance_miles: float, rating: ZoneRating) -> None:
        """Renders a local zone rating for a distance."""
        pass

    def display_zones(self, zones: List[Zone]) -> None:
        """Renders the zone table."""
        pass

    def display_vehicle_type(self, vehicle_type: VehicleType) -> None:
        pass

    def display_health(self, services: Dict[str, bool]) -> None:
        """Renders a reachability map, one row per service."""
        pass
