"""
Dexfra CLI — paid API access from the terminal.

Commands:
    dexfra fetch      Call a URL, paying any x402 challenge
    dexfra discover   Search the API marketplace
    dexfra api        Show one marketplace API
    dexfra balance    Show a wallet balance
    dexfra tools      Show the agent tools built from the kit actions
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from typing import Optional

import click
import httpx
from click.core import ParameterSource

from . import __version__
from .balance import BalanceReader
from .client import DexfraAgentKit
from .config import DexfraConfig
from .constants import DEFAULT_MAX_AMOUNT_USDC
from .discovery import DiscoveryFilters, MarketplaceClient
from .errors import DexfraError
from .fetch import PaymentFetcher
from .money import format_usdc
from .signers import LocalKeySigner
from .tools import create_tools, get_tool_stats


def _fail(message: str):
    click.echo(f"❌ {message}", err=True)
    sys.exit(1)


def _parse_headers(raw_headers: tuple[str, ...]) -> dict[str, str]:
    headers = {}
    for item in raw_headers:
        name, sep, value = item.partition(":")
        if not sep or not name.strip():
            raise click.BadParameter(f"Expected 'Name: value', got {item!r}", param_hint="--header")
        headers[name.strip()] = value.strip()
    return headers


def _refuse_key_from_argv(param: str, unsafe_allow_key_arg: bool):
    ctx = click.get_current_context(silent=True)
    key_from_argv = (
        ctx is not None
        and ctx.get_parameter_source(param) == ParameterSource.COMMANDLINE
    )
    if key_from_argv and not unsafe_allow_key_arg:
        _fail(
            f"Refusing --{param.replace('_', '-')} from argv. Re-run with prompt input, set "
            "DEXFRA_PRIVATE_KEY, or pass --unsafe-allow-key-arg to acknowledge the risk."
        )


# ── CLI ───────────────────────────────────────────────────────────

@click.group()
@click.version_option(version=__version__)
@click.option("-v", "--verbose", is_flag=True, help="Log payment flow details to stderr")
def main(verbose: bool):
    """Dexfra — pay-per-call API access for AI agents."""
    if verbose:
        logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")


@main.command()
@click.argument("url")
@click.option("--method", "-X", default="GET", show_default=True,
              type=click.Choice(["GET", "POST", "PUT", "PATCH", "DELETE"], case_sensitive=False))
@click.option("--data", "-d", default=None, help="JSON request body")
@click.option("--header", "-H", "headers", multiple=True, help="Extra header, 'Name: value'")
@click.option("--max-amount", type=float, default=DEFAULT_MAX_AMOUNT_USDC, show_default=True,
              help="Maximum USDC to pay for this call")
@click.option("--network", default=None, help="Preferred payment network")
@click.option("--private-key", prompt=True, hide_input=True, envvar="DEXFRA_PRIVATE_KEY",
              help="Payer private key (hex); read from DEXFRA_PRIVATE_KEY or a prompt")
@click.option(
    "--unsafe-allow-key-arg",
    is_flag=True,
    default=False,
    help="Allow passing --private-key via argv (unsafe; can leak in shell/process history).",
)
def fetch(
    url: str,
    method: str,
    data: Optional[str],
    headers: tuple[str, ...],
    max_amount: float,
    network: Optional[str],
    private_key: str,
    unsafe_allow_key_arg: bool,
):
    """Request URL, paying an x402 challenge up to --max-amount."""
    _refuse_key_from_argv("private_key", unsafe_allow_key_arg)

    try:
        signer = LocalKeySigner.from_private_key(private_key)
        overrides = {"max_amount": max_amount}
        if network:
            overrides["network"] = network
        config = DexfraConfig.from_env(
            **overrides,
            on_payment_required=lambda amount: click.echo(f"💳 Payment required: {format_usdc(amount)}", err=True),
            on_payment_success=lambda tx_id: click.echo(f"✅ Settled: {tx_id}", err=True),
        )
        body = json.loads(data) if data else None
        extra_headers = _parse_headers(headers)
    except click.BadParameter:
        raise
    except Exception as e:
        _fail(f"Invalid input: {e}")

    async def run():
        async with PaymentFetcher(signer, config) as fetcher:
            return await fetcher.request(method.upper(), url, headers=extra_headers, json=body)

    try:
        response = asyncio.run(run())
    except DexfraError as e:
        _fail(f"{e.code}: {e}")
    except httpx.HTTPError as e:
        _fail(f"Request failed: {e}")

    click.echo(f"HTTP {response.status_code}", err=True)
    click.echo(response.text)
    if response.is_error:
        sys.exit(1)


@main.command()
@click.option("--category", default=None, help='Category name, e.g. "Token Data"')
@click.option("--search", default=None, help="Free-text search")
@click.option("--tag", "tags", multiple=True, help="Required tag (repeatable)")
@click.option("--min-price", type=float, default=None, help="Minimum price in USDC (inclusive)")
@click.option("--max-price", type=float, default=None, help="Maximum price in USDC (inclusive)")
@click.option("--limit", type=int, default=20, show_default=True)
@click.option("--json", "as_json", is_flag=True, help="Print raw JSON")
def discover(
    category: Optional[str],
    search: Optional[str],
    tags: tuple[str, ...],
    min_price: Optional[float],
    max_price: Optional[float],
    limit: int,
    as_json: bool,
):
    """Search the Dexfra API marketplace."""
    config = DexfraConfig.from_env()
    filters = DiscoveryFilters(
        category=category,
        search=search,
        tags=list(tags) or None,
        min_price=min_price,
        max_price=max_price,
        limit=limit,
    )

    async def run():
        async with MarketplaceClient(config.marketplace_url, timeout_seconds=config.timeout_seconds) as client:
            return await client.discover_apis(filters)

    try:
        apis = asyncio.run(run())
    except DexfraError as e:
        _fail(f"{e.code}: {e}")

    if as_json:
        click.echo(json.dumps([api.to_dict() for api in apis], indent=2))
        return
    if not apis:
        click.echo("No APIs found.")
        return
    for api in apis:
        price = api.price_formatted or f"${api.price} per call"
        click.echo(f"{api.id}  {api.name}")
        click.echo(f"   Category: {api.category}  Price: {price}")
        if api.tags:
            click.echo(f"   Tags:     {', '.join(api.tags)}")


@main.command()
@click.argument("api_id")
def api(api_id: str):
    """Show details of one marketplace API."""
    config = DexfraConfig.from_env()

    async def run():
        async with MarketplaceClient(config.marketplace_url, timeout_seconds=config.timeout_seconds) as client:
            return await client.get_api_details(api_id)

    try:
        details = asyncio.run(run())
    except DexfraError as e:
        _fail(f"{e.code}: {e}")

    click.echo(json.dumps(details.to_dict(), indent=2))


@main.command()
@click.argument("address")
@click.option("--token", default=None, help="ERC-20 token contract (default: native coin)")
@click.option("--network", default=None, help="Network name, e.g. base-sepolia")
@click.option("--rpc-url", default=None, help="JSON-RPC endpoint override")
def balance(address: str, token: Optional[str], network: Optional[str], rpc_url: Optional[str]):
    """Show the balance of ADDRESS."""
    config = DexfraConfig.from_env(**({"network": network} if network else {}))

    async def run():
        async with BalanceReader(config.network, rpc_url or config.rpc_url, timeout_seconds=config.timeout_seconds) as reader:
            return await reader.get_balance(address, token)

    try:
        result = asyncio.run(run())
    except DexfraError as e:
        _fail(f"{e.code}: {e}")

    click.echo(f"💰 {result.formatted}")


@main.command()
@click.option("--json", "as_json", is_flag=True, help="Print tool definitions as JSON")
def tools(as_json: bool):
    """Show the agent tools built from the kit's actions."""
    config = DexfraConfig.from_env()
    if config.max_amount is None:
        config.max_amount = DEFAULT_MAX_AMOUNT_USDC
    kit = DexfraAgentKit(LocalKeySigner.generate(), config)
    built = create_tools(kit)
    if as_json:
        click.echo(json.dumps([t.to_param() for t in built.values()], indent=2))
    else:
        stats = get_tool_stats(kit)
        click.echo(f"🧰 {stats['available_tools']} of {stats['total_actions']} actions available as tools")
        for tool in built.values():
            click.echo(f"   {tool.name}")
    asyncio.run(kit.aclose())


if __name__ == "__main__":
    main()
