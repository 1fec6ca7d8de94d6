"""
ledgerbench CLI

Command-line interface for driving single invocations against a ledger
gateway, using the same engine the benchmark workers use.

Commands:
  invoke        - Submit a contract call or transaction and wait for its outcome
  status        - Look up a transaction by its gateway reference id
  check-config  - Validate the gateway section of a network configuration
"""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path
from typing import Optional

import click

from .config import GatewayConfig, Settings, load_network_config
from .errors import LedgerbenchError
from .gateway.connector import GatewayConnector
from .logging_utils import configure_logging
from .models import InvocationDescriptor
from .utils import dump_json, parse_json_object

# ============ Constants ============

VERSION = "0.3.0"


def _print_banner() -> None:
    click.echo(
        click.style("  ◆ ", fg="cyan")
        + click.style("L E D G E R B E N C H", fg="bright_white", bold=True)
        + click.style(f"  v{VERSION}", dim=True)
    )
    click.echo()


# ============ Main CLI Group ============


@click.group(invoke_without_command=True)
@click.version_option(version=VERSION, prog_name="ledgerbench")
@click.option(
    "--env-file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Load LEDGERBENCH_* settings from this .env file",
)
@click.pass_context
def cli(ctx: click.Context, env_file: Optional[Path]) -> None:
    """ledgerbench: ledger gateway submission engine."""
    try:
        settings = Settings.from_env(env_file)
    except LedgerbenchError as exc:
        click.secho(f"ERROR: {exc}", fg="red", err=True)
        sys.exit(exc.exit_code)
    configure_logging(settings.log_level)
    ctx.obj = settings

    if ctx.invoked_subcommand is None:
        _print_banner()
        click.echo(ctx.get_help())


config_option = click.option(
    "--config",
    "config_path",
    required=True,
    envvar="LEDGERBENCH_NETWORK_CONFIG",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Network configuration file (JSON with a 'gateway' section)",
)


def _load_config(path: Path) -> GatewayConfig:
    try:
        return load_network_config(path)
    except LedgerbenchError as exc:
        click.secho(f"ERROR: {exc}", fg="red", err=True)
        sys.exit(exc.exit_code)


def _connector(config: GatewayConfig, settings: Settings) -> GatewayConnector:
    connector = GatewayConnector(
        config,
        policy=settings.poll_policy(),
        timeout=settings.http_timeout,
    )
    args = connector.prepare_worker_arguments(0)[0]
    connector.get_context(0, args)
    return connector


# ============ Commands ============


@cli.command()
@config_option
@click.option("--contract", required=True, help="Logical contract name from the configuration")
@click.option("--verb", required=True, help="Contract method to call")
@click.option("--args", "args_json", default="{}", help="Method arguments as a JSON object")
@click.option("--read-only", is_flag=True, help="Query (:call) instead of transaction (:sendTx)")
@click.pass_obj
def invoke(
    settings: Settings,
    config_path: Path,
    contract: str,
    verb: str,
    args_json: str,
    read_only: bool,
) -> None:
    """
    Submit one invocation and report its outcome.

    Transactions are polled until the gateway reports a terminal state.
    """
    try:
        args = parse_json_object(args_json, "Args")
    except (json.JSONDecodeError, ValueError) as exc:
        click.secho(f"ERROR: Invalid args: {exc}", fg="red", err=True)
        sys.exit(1)

    config = _load_config(config_path)
    descriptor = InvocationDescriptor(contract=contract, verb=verb, args=args, read_only=read_only)

    click.echo(f"  Gateway: {config.url}")
    click.echo(f"  Contract: {contract}")
    click.echo(f"  Method: {verb} ({descriptor.kind})")
    click.echo(f"  Args: {json.dumps(args, sort_keys=True)}")
    click.echo("")

    async def run():
        async with _connector(config, settings) as connector:
            return await connector.invoke(descriptor)

    status = asyncio.run(run())
    latency = f"{status.latency:.3f}s" if status.latency is not None else "n/a"

    if status.succeeded:
        click.secho("SUCCESS", fg="green")
        if status.reference_id:
            click.echo(f"  Reference: {status.reference_id} ({status.polls} status checks)")
        click.echo(f"  Latency: {latency}")
        click.echo(dump_json(status.result))
    else:
        click.secho(f"FAILED: {status.error}", fg="red")
        if status.reference_id:
            click.echo(f"  Reference: {status.reference_id}")
        click.echo(f"  Latency: {latency}")
        sys.exit(1)


@cli.command()
@config_option
@click.argument("reference_id")
@click.pass_obj
def status(settings: Settings, config_path: Path, reference_id: str) -> None:
    """Show the gateway's current view of a transaction."""
    config = _load_config(config_path)

    async def run():
        async with _connector(config, settings) as connector:
            return await connector.check_status(reference_id)

    try:
        payload = asyncio.run(run())
    except LedgerbenchError as exc:
        click.secho(f"ERROR: {exc}", fg="red", err=True)
        sys.exit(exc.exit_code)
    click.echo(dump_json(payload))


@cli.command("check-config")
@config_option
def check_config(config_path: Path) -> None:
    """Validate the gateway section of a network configuration."""
    config = _load_config(config_path)
    click.secho("Configuration OK", fg="green")
    click.echo(f"  URL: {config.url}")
    if config.chain_id is not None:
        click.echo(f"  Chain: {config.chain_id}")
    click.echo(f"  User: {config.from_user or '-'}")
    click.echo(f"  Application: {config.from_application or '-'}")
    click.echo(f"  Contracts: {len(config.contracts)}")
    for name, info in sorted(config.contracts.items()):
        click.echo(f"    {name}: {info.get('path')}")


# ============ Entry Points ============


def main() -> None:
    """ledgerbench CLI entry point."""
    if sys.platform == "win32":
        try:
            sys.stdout.reconfigure(encoding="utf-8")  # type: ignore[union-attr]
            sys.stderr.reconfigure(encoding="utf-8")  # type: ignore[union-attr]
        except (AttributeError, OSError):
            pass
    cli()


if __name__ == "__main__":
    main()
