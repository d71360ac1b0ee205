"""Main entry point for the yardcli application.

Sets up the Typer CLI application, performs dependency injection (Composition Root),
defines CLI commands, and delegates execution to the CommandHandler.
"""

import asyncio
import logging
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, List, Optional, TypeVar

import httpx
import typer
from typing_extensions import Annotated

# --- Core Layer ---
from yardcli.core.command_handler import CommandHandler, parse_line_item
from yardcli.core.services.delivery_fee_service import DeliveryFeeService
from yardcli.core.services.order_pricing_service import OrderPricingService
from yardcli.core.services.tax_service import TaxService
from yardcli.core.vehicle_classifier import VehicleClassifier
from yardcli.core.zone_rating import ZoneRatingEngine

# --- Domain Layer ---
from yardcli.domain.models.common import VehicleType
from yardcli.domain.models.pricing import Address, LineItem, TaxExemption

# --- Infrastructure Layer ---
from yardcli.infrastructure.cli.display import ConsoleDisplay
from yardcli.infrastructure.clients.pricing_clients import DeliveryApiClient, QuoteApiClient, TaxProviderClient
from yardcli.infrastructure.config.settings import (
    PRICING, TAX, ConfigurationError, build_client_config, get_base_delivery_fee,
    get_default_tax_rate, get_logging_settings, get_store_address, load_configuration, reset_configuration
)
from yardcli.infrastructure.monitoring.logger_setup import setup_logging
from yardcli.infrastructure.resilience.request_executor import RequestExecutor

logger = logging.getLogger(__name__)

T = TypeVar("T")


def create_http_client() -> httpx.AsyncClient:
    """Shared connection pool. Deadlines are enforced per attempt by the executors."""
    return httpx.AsyncClient(timeout=None, follow_redirects=True)


# --- Dependency Injection Container (Manual) ---

def create_dependencies(with_remote: bool = True) -> Dict[str, Any]:
    """Creates and wires up all dependencies for one command invocation.

    This acts as the Composition Root. Remote clients are only built when
    `with_remote` is set and their endpoint family is configured.

    Raises:
        ConfigurationError: If a configured value is invalid.
    """
    logger.debug("Initializing application dependencies...")
    dependencies: Dict[str, Any] = {'ui': ConsoleDisplay(), 'http_client': None}

    quote_client = delivery_client = tax_client = None
    health_targets: Dict[str, Any] = {}

    if with_remote:
        pricing_config = build_client_config(PRICING)
        tax_config = build_client_config(TAX)
        if pricing_config or tax_config:
            dependencies['http_client'] = create_http_client()

        if pricing_config:
            pricing_executor = RequestExecutor(pricing_config, http_client=dependencies['http_client'])
            quote_client = QuoteApiClient(pricing_executor)
            delivery_client = DeliveryApiClient(pricing_executor)
            health_targets[PRICING] = quote_client
        else:
            logger.warning("Pricing service not configured; using local calculation only.")

        if tax_config:
            tax_client = TaxProviderClient(RequestExecutor(tax_config, http_client=dependencies['http_client']))
            health_targets[TAX] = tax_client

    zone_engine = ZoneRatingEngine()
    classifier = VehicleClassifier()
    delivery_fee_service = DeliveryFeeService(
        store_address=get_store_address(),
        quote_service=quote_client,
        delivery_service=delivery_client,
        zone_engine=zone_engine,
        classifier=classifier,
        base_fee=get_base_delivery_fee(),
    )
    tax_service = TaxService(
        quote_service=quote_client,
        delivery_service=delivery_client,
        tax_provider=tax_client,
        default_rate=get_default_tax_rate(),
    )

    dependencies['command_handler'] = CommandHandler(
        delivery_fee_service=delivery_fee_service,
        tax_service=tax_service,
        order_pricing_service=OrderPricingService(delivery_fee_service, tax_service),
        zone_engine=zone_engine,
        classifier=classifier,
        ui=dependencies['ui'],
        health_targets=health_targets,
    )
    logger.debug("All dependencies initialized successfully.")
    return dependencies


def _build_or_exit(with_remote: bool = True) -> Dict[str, Any]:
    try:
        return create_dependencies(with_remote=with_remote)
    except ConfigurationError as e:
        logger.error(f"Fatal Error during application initialization: {e}", exc_info=True)
        ConsoleDisplay().display_error(f"Configuration error: {e}")
        raise typer.Exit(code=1)


# --- Helper for Running Async Commands ---

def run_async(action: Callable[[CommandHandler], Awaitable[T]]) -> T:
    """Builds dependencies, runs one async handler call and closes the connection pool."""
    dependencies = _build_or_exit()

    async def _run() -> T:
        try:
            return await action(dependencies['command_handler'])
        finally:
            if dependencies['http_client'] is not None:
                await dependencies['http_client'].aclose()

    return asyncio.run(_run())


def _exit_if_failed(result: Any) -> None:
    if result is None:
        raise typer.Exit(code=1)


# --- Typer App Definition ---
app = typer.Typer(
    name="yardcli",
    help="yardcli: delivery fee and sales tax pricing for landscape-supply orders.",
    add_completion=False,
)

# --- Shared Options ---
StreetOption = Annotated[str, typer.Option("--street", help="Delivery street address.")]
CityOption = Annotated[str, typer.Option("--city", help="Delivery city.")]
StateOption = Annotated[str, typer.Option("--state", help="Two-letter state code.")]
ZipOption = Annotated[str, typer.Option("--zip", help="ZIP code.")]
ItemOption = Annotated[
    Optional[List[str]],
    typer.Option("--item", "-i", help="Line item 'name:unit:quantity[:category[:net_weight_lbs]]'. Repeatable.")
]
VehicleOption = Annotated[
    Optional[VehicleType],
    typer.Option("--vehicle", help="Force the vehicle instead of classifying the items.")
]
ExemptOption = Annotated[bool, typer.Option("--exempt", help="Client is tax exempt.")]
CertificateOption = Annotated[Optional[str], typer.Option("--certificate", help="Tax exemption certificate number.")]


def _address(street: str, city: str, state: str, zip_code: str) -> Address:
    return Address(street=street, city=city, state=state, postal_code=zip_code)


def _line_items(items: Optional[List[str]]) -> List[LineItem]:
    try:
        return [parse_line_item(item) for item in items or []]
    except ValueError as e:
        raise typer.BadParameter(str(e), param_hint="--item")


def _exemption(exempt: bool, certificate: Optional[str]) -> Optional[TaxExemption]:
    if not exempt and not certificate:
        return None
    return TaxExemption(is_tax_exempt=True, certificate_number=certificate)


# --- CLI Commands ---

@app.command()
def quote(
    street: StreetOption,
    city: CityOption,
    state: StateOption,
    zip_code: ZipOption,
    item: ItemOption = None,
    vehicle: VehicleOption = None,
):
    """Calculate the delivery fee for an address."""
    address = _address(street, city, state, zip_code)
    items = _line_items(item)
    _exit_if_failed(run_async(lambda handler: handler.handle_quote(address, items, vehicle)))


@app.command()
def tax(
    subtotal: Annotated[float, typer.Argument(help="Taxable amount in dollars.")],
    street: StreetOption,
    city: CityOption,
    state: StateOption,
    zip_code: ZipOption,
    exempt: ExemptOption = False,
    certificate: CertificateOption = None,
):
    """Calculate sales tax on an amount for an address."""
    address = _address(street, city, state, zip_code)
    exemption = _exemption(exempt, certificate)
    _exit_if_failed(run_async(lambda handler: handler.handle_tax(address, subtotal, exemption)))


@app.command(name="price-order")
def price_order(
    subtotal: Annotated[float, typer.Argument(help="Merchandise subtotal in dollars.")],
    street: StreetOption,
    city: CityOption,
    state: StateOption,
    zip_code: ZipOption,
    item: ItemOption = None,
    vehicle: VehicleOption = None,
    exempt: ExemptOption = False,
    certificate: CertificateOption = None,
    tax_delivery: Annotated[bool, typer.Option("--tax-delivery", help="Include the delivery fee in the taxable amount.")] = False,
):
    """Price an order: delivery fee, sales tax and grand total."""
    address = _address(street, city, state, zip_code)
    items = _line_items(item)
    exemption = _exemption(exempt, certificate)
    _exit_if_failed(run_async(
        lambda handler: handler.handle_price_order(address, subtotal, items, exemption, vehicle, tax_delivery)
    ))


@app.command()
def rate(
    distance: Annotated[float, typer.Argument(help="Driving distance from the yard in miles.")],
):
    """Rate a distance against the local zone table (no network)."""
    handler: CommandHandler = _build_or_exit(with_remote=False)['command_handler']
    _exit_if_failed(handler.handle_rate(distance))


@app.command()
def zones():
    """Show the delivery zone table."""
    handler: CommandHandler = _build_or_exit(with_remote=False)['command_handler']
    handler.handle_zones()


@app.command()
def classify(
    item: ItemOption = None,
):
    """Pick the delivery vehicle for a set of line items."""
    items = _line_items(item)
    handler: CommandHandler = _build_or_exit(with_remote=False)['command_handler']
    handler.handle_classify(items)


@app.command()
def health():
    """Check which remote pricing services are reachable."""
    status = run_async(lambda handler: handler.handle_health())
    if status and not all(status.values()):
        raise typer.Exit(code=1)


@app.callback()
def main_callback(
    config: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", exists=True, dir_okay=False, help="YAML configuration file.")
    ] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging.")] = False,
):
    """Loads configuration and sets up logging before any command runs."""
    try:
        if config is not None:
            reset_configuration()
            load_configuration(config_file=config)
        log_level, log_format, log_file = get_logging_settings()
        setup_logging(log_level="DEBUG" if verbose else log_level, log_format=log_format, log_file=log_file)
    except (ConfigurationError, ValueError) as e:
        ConsoleDisplay().display_error(f"Configuration error: {e}")
        raise typer.Exit(code=1)


# --- Main Execution Guard ---

def cli_entry_point():
    """Function to be called by the script entry point in pyproject.toml."""
    app()


if __name__ == "__main__":
    cli_entry_point()
