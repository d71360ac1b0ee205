import logging
from typing import Optional, Any, Dict, List

from rich.console import Console
from rich.panel import Panel
from rich.box import ROUNDED, HEAVY, SIMPLE
from rich.text import Text
from rich.table import Table

from yardcli.domain.interfaces.user_interface import UserInterface
from yardcli.domain.models.common import VehicleType
from yardcli.domain.models.pricing import DeliveryFeeResult, OrderQuote, TaxResult, Zone, ZoneRating

logger = logging.getLogger(__name__)


def _money(amount: Optional[float]) -> str:
    return "-" if amount is None else f"${amount:,.2f}"


def _percent(rate: Optional[float]) -> str:
    return "-" if rate is None else f"{rate * 100:.4g}%"


class ConsoleDisplay(UserInterface):
    """Concrete implementation of UserInterface using the rich library for console output."""

    def __init__(self, console: Optional[Console] = None):
        """Initializes the rich Console (injectable for tests)."""
        self._console = console or Console()

    @property
    def console(self):
        """Get the Rich console instance for direct operations."""
        return self._console

    def display_output(self, output: str, **kwargs: Any) -> None:
        """Displays plain output text, optionally inside a titled panel.

        Args:
            output: The text to display.
            **kwargs: Additional arguments including:
                - title: Panel title; without one the text is printed bare
                - style: Border style for the panel
        """
        title = kwargs.get("title")
        if not title:
            self.console.print(output)
            return
        self.console.print(Panel(
            Text(str(output)),
            title=f"[bold white]{title}[/bold white]",
            border_style=kwargs.get("style", "cyan"),
            box=ROUNDED,
            padding=(0, 1)
        ))

    def display_error(self, error_message: str, **kwargs: Any) -> None:
        """Displays an error message in a distinct style."""
        panel = Panel(
            Text(error_message, style="white"),
            title="[bold red]Error[/bold red]",
            border_style="red",
            box=HEAVY,
            padding=(0, 1)
        )
        self.console.print(panel)

    def display_info(self, info_message: str, **kwargs: Any) -> None:
        panel = Panel(
            Text(info_message, style="white"),
            title="[bold blue]Info[/bold blue]",
            border_style="blue",
            box=SIMPLE,
            padding=(0, 1)
        )
        self.console.print(panel)

    def display_warning(self, warning_message: str, **kwargs: Any) -> None:
        """Displays a warning message with enhanced styling."""
        logger.warning(f"Display warning: {warning_message}")
        panel = Panel(
            Text(warning_message, style="white"),
            title="[bold yellow]Warning[/bold yellow]",
            border_style="yellow",
            box=HEAVY,
            padding=(0, 1)
        )
        self.console.print(panel)

    # --- Pricing results ---

    def display_delivery_fee(self, result: DeliveryFeeResult) -> None:
        """Renders the delivery fee, its context and breakdown as a two-column table."""
        table = Table(show_header=False, box=ROUNDED, border_style="cyan", padding=(0, 1),
                      title="[bold cyan]Delivery Fee[/bold cyan]")
        table.add_column("Field", style="cyan")
        table.add_column("Value", justify="right")

        table.add_row("Fee", f"[bold]{_money(result.fee)}[/bold]")
        if result.zone is not None:
            table.add_row("Zone", str(result.zone))
        if result.distance_miles is not None:
            table.add_row("Distance", f"{result.distance_miles:.2f} mi")
        if result.duration_minutes is not None:
            table.add_row("Duration", f"{result.duration_minutes:.0f} min")
        if result.vehicle_type is not None:
            table.add_row("Vehicle", result.vehicle_type.value)
        table.add_row("Base fee", _money(result.breakdown.base_fee))
        table.add_row("Distance fee", _money(result.breakdown.distance_fee))
        table.add_row("Zone fee", _money(result.breakdown.zone_fee))
        table.add_row("Source", f"[dim]{result.source}[/dim]")
        self.console.print(table)

    def display_tax(self, result: TaxResult) -> None:
        table = Table(show_header=False, box=ROUNDED, border_style="green", padding=(0, 1),
                      title="[bold green]Sales Tax[/bold green]")
        table.add_column("Field", style="green")
        table.add_column("Value", justify="right")

        table.add_row("Subtotal", _money(result.subtotal))
        if result.is_exempt:
            table.add_row("Exempt", result.exempt_reason or "Tax Exempt")
        table.add_row("Rate", _percent(result.tax_rate))
        table.add_row("Tax", f"[bold]{_money(result.tax_amount)}[/bold]")
        table.add_row("Total", _money(result.total))
        for part, rate in result.breakdown.to_dict().items():
            table.add_row(f"  {part}", _percent(rate))
        if result.jurisdiction:
            table.add_row("Jurisdiction", result.jurisdiction)
        table.add_row("Source", f"[dim]{result.source}[/dim]")
        self.console.print(table)

    def display_order_quote(self, quote: OrderQuote) -> None:
        self.display_delivery_fee(quote.delivery)
        self.display_tax(quote.tax)
        self.console.print(Panel(
            Text(f"Grand total: {_money(quote.grand_total)}", style="bold white", justify="center"),
            border_style="magenta",
            box=HEAVY,
            padding=(0, 1)
        ))

    def display_zone_rating(self, distance_miles: float, rating: ZoneRating) -> None:
        table = Table(show_header=True, box=ROUNDED, border_style="cyan", padding=(0, 1),
                      title=f"[bold cyan]{distance_miles:.2f} miles[/bold cyan]")
        table.add_column("Zone", justify="right")
        table.add_column("Miles")
        table.add_column("Standard", justify="right")
        table.add_column("Heavy", justify="right")
        table.add_row(
            str(rating.zone),
            f"{rating.min_miles:.2f}-{rating.max_miles:.2f}",
            _money(rating.standard_fee),
            _money(rating.heavy_fee),
        )
        self.console.print(table)

    def display_zones(self, zones: List[Zone]) -> None:
        table = Table(show_header=True, box=ROUNDED, border_style="cyan", padding=(0, 1),
                      title="[bold cyan]Delivery Zones[/bold cyan]")
        table.add_column("Zone", style="cyan", justify="right")
        table.add_column("Min miles", justify="right")
        table.add_column("Max miles", justify="right")
        table.add_column("Standard fee", justify="right")
        for zone in zones:
            table.add_row(str(zone.zone_number), f"{zone.min_miles:.2f}", f"{zone.max_miles:.2f}", _money(zone.standard_fee))
        self.console.print(table)

    def display_vehicle_type(self, vehicle_type: VehicleType) -> None:
        style = "bold red" if vehicle_type is VehicleType.HEAVY else "bold green"
        self.console.print(f"Vehicle: [{style}]{vehicle_type.value}[/{style}] ({vehicle_type.wire_name})")

    def display_health(self, services: Dict[str, bool]) -> None:
        """One row per service; an empty map means nothing is configured."""
        if not services:
            self.display_warning("No remote services configured.")
            return
        table = Table(show_header=True, box=SIMPLE, border_style="cyan", padding=(0, 1))
        table.add_column("Service", style="cyan")
        table.add_column("Status")
        for name, healthy in services.items():
            table.add_row(name, "[green]up[/green]" if healthy else "[red]down[/red]")
        self.console.print(table)
