"""
Command-line interface for sidechain deposits.
"""

from __future__ import annotations

import asyncio
import sys
from typing import Annotated

import typer
from loguru import logger
from walletapi.client import WalletApiClient
from walletapi.errors import ErrorKind, WalletApiError
from walletapi.models import FeeEstimationRequest, FeeTier

from deposit.config import DepositSettings
from deposit.orchestrator import CONNECTIVITY_MESSAGE
from deposit.ui import LoggingUI
from deposit.units import format_coins
from deposit.workflow import DepositWorkflow

app = typer.Typer(
    name="sidechain-deposit",
    help="Sidechain deposit - build and broadcast deposit transactions",
    add_completion=False,
)

ApiUrlOption = Annotated[
    str | None,
    typer.Option("--api-url", envvar="DEPOSIT_API_URL", help="Wallet API base URL"),
]
WalletOption = Annotated[
    str | None,
    typer.Option("--wallet", "-w", envvar="DEPOSIT_WALLET_NAME", help="Wallet name"),
]
FeeOption = Annotated[FeeTier, typer.Option("--fee", help="Fee tier")]
LogLevelOption = Annotated[
    str | None, typer.Option("--log-level", "-l", help="Log level (default: DEPOSIT_LOG_LEVEL)")
]


def setup_logging(level: str) -> None:
    """Configure loguru logging."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=level.upper(),
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | {message}",
    )


def load_settings(api_url: str | None, wallet_name: str | None) -> DepositSettings:
    """Build settings from the environment, with command line overrides."""
    overrides: dict[str, str] = {}
    if api_url:
        overrides["api_url"] = api_url
    if wallet_name:
        overrides["wallet_name"] = wallet_name
    settings = DepositSettings(**overrides)
    if not settings.wallet_name:
        logger.error("Wallet name required. Use --wallet or DEPOSIT_WALLET_NAME")
        raise typer.Exit(1)
    return settings


def describe_error(error: WalletApiError) -> str:
    classified = error.classification
    if classified.kind == ErrorKind.CONNECTIVITY:
        return CONNECTIVITY_MESSAGE
    if classified.kind == ErrorKind.DOMAIN_MESSAGE and classified.message:
        return classified.message
    return str(error)


def _client(settings: DepositSettings) -> WalletApiClient:
    return WalletApiClient(settings.api_url, timeout=settings.request_timeout)


@app.command()
def balance(
    api_url: ApiUrlOption = None,
    wallet: WalletOption = None,
    log_level: LogLevelOption = None,
) -> None:
    """Show the wallet's spendable balance (confirmed + unconfirmed)."""
    settings = load_settings(api_url, wallet)
    setup_logging(log_level or settings.log_level)
    asyncio.run(_run_balance(settings))


async def _run_balance(settings: DepositSettings) -> None:
    client = _client(settings)
    try:
        response = await client.get_wallet_balance(settings.wallet_name)
    except WalletApiError as e:
        logger.error(describe_error(e))
        raise typer.Exit(1)
    finally:
        await client.close()

    if not response.balances:
        typer.echo("No accounts found")
        return
    account = response.balances[0]
    typer.echo(f"Confirmed:   {format_coins(account.amount_confirmed)} {settings.coin_unit}")
    typer.echo(f"Unconfirmed: {format_coins(account.amount_unconfirmed)} {settings.coin_unit}")
    typer.echo(f"Total:       {format_coins(account.total)} {settings.coin_unit}")


@app.command(name="max")
def max_balance(
    fee: FeeOption = FeeTier.MEDIUM,
    api_url: ApiUrlOption = None,
    wallet: WalletOption = None,
    log_level: LogLevelOption = None,
) -> None:
    """Show the maximum amount that can be deposited with the given fee tier."""
    settings = load_settings(api_url, wallet)
    setup_logging(log_level or settings.log_level)
    asyncio.run(_run_max_balance(settings, fee))


async def _run_max_balance(settings: DepositSettings, fee: FeeTier) -> None:
    client = _client(settings)
    try:
        result = await client.get_maximum_balance(
            settings.wallet_name, fee, account_name=settings.account_name
        )
    except WalletApiError as e:
        logger.error(describe_error(e))
        raise typer.Exit(1)
    finally:
        await client.close()

    typer.echo(
        f"Max spendable: {format_coins(result.max_spendable_amount)} {settings.coin_unit} "
        f"(fee {format_coins(result.fee)} {settings.coin_unit})"
    )


@app.command()
def estimate(
    address: Annotated[str, typer.Argument(help="Destination address")],
    amount: Annotated[str, typer.Argument(help="Amount in coins")],
    fee: FeeOption = FeeTier.MEDIUM,
    api_url: ApiUrlOption = None,
    wallet: WalletOption = None,
    log_level: LogLevelOption = None,
) -> None:
    """Estimate the fee of a deposit."""
    settings = load_settings(api_url, wallet)
    setup_logging(log_level or settings.log_level)
    asyncio.run(_run_estimate(settings, address, amount, fee))


async def _run_estimate(settings: DepositSettings, address: str, amount: str, fee: FeeTier) -> None:
    client = _client(settings)
    request = FeeEstimationRequest(
        wallet_name=settings.wallet_name,
        account_name=settings.account_name,
        destination_address=address.strip(),
        amount=amount,
        fee_type=fee,
    )
    try:
        estimated = await client.estimate_fee(request)
    except WalletApiError as e:
        logger.error(describe_error(e))
        raise typer.Exit(1)
    finally:
        await client.close()

    typer.echo(f"Estimated fee: {format_coins(estimated)} {settings.coin_unit}")


@app.command()
def send(
    address: Annotated[str, typer.Argument(help="Destination address")],
    amount: Annotated[
        str, typer.Option("--amount", "-a", help="Amount in coins (ignored with --max)")
    ] = "",
    use_max: Annotated[
        bool, typer.Option("--max", help="Deposit the maximum spendable amount")
    ] = False,
    fee: FeeOption = FeeTier.MEDIUM,
    password: Annotated[
        str,
        typer.Option(
            "--password",
            "-p",
            envvar="DEPOSIT_PASSWORD",
            prompt="Wallet password",
            hide_input=True,
            help="Wallet password",
        ),
    ] = "",
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Do not ask for confirmation")] = False,
    api_url: ApiUrlOption = None,
    wallet: WalletOption = None,
    log_level: LogLevelOption = None,
) -> None:
    """Build, sign and broadcast a deposit transaction."""
    settings = load_settings(api_url, wallet)
    setup_logging(log_level or settings.log_level)

    if not amount and not use_max:
        logger.error("Amount required. Use --amount or --max")
        raise typer.Exit(1)

    ok = asyncio.run(_run_send(settings, address, amount, fee, password, use_max, yes))
    if not ok:
        raise typer.Exit(1)


async def _run_send(
    settings: DepositSettings,
    address: str,
    amount: str,
    fee: FeeTier,
    password: str,
    use_max: bool,
    assume_yes: bool,
) -> bool:
    """Drive the deposit workflow once. Returns True if the deposit was broadcast."""
    client = _client(settings)
    ui = LoggingUI(coin_unit=settings.coin_unit)
    workflow = DepositWorkflow(client, ui, settings)

    try:
        try:
            await workflow.balance_monitor.refresh()
        except WalletApiError as e:
            logger.error(describe_error(e))
            return False

        workflow.set_values(address=address, amount=amount, fee=fee, password=password)
        if use_max:
            await workflow.get_max_balance()
            if workflow.api_error:
                logger.error(workflow.api_error)
                return False

        # Run the settled-form step now instead of waiting for the debouncer
        workflow.debouncer.cancel()
        await workflow.on_value_changed()

        validation = workflow.revalidate()
        if not validation.valid or workflow.api_error:
            for name, message in workflow.form_errors.items():
                if message:
                    logger.error(f"{name}: {message}")
            if workflow.api_error:
                logger.error(workflow.api_error)
            return False

        values = workflow.form.values
        summary = (
            f"Deposit {values.amount} {settings.coin_unit} to {values.address.strip()} "
            f"with fee {format_coins(workflow.estimated_fee)} {settings.coin_unit}?"
        )
        if not assume_yes and not typer.confirm(summary):
            typer.echo("Aborted")
            return False

        if await workflow.deposit():
            typer.echo("Deposit broadcast")
            return True

        logger.error(workflow.api_error or "Deposit failed")
        return False

    finally:
        await workflow.teardown()
        await client.close()


def main() -> None:
    """Entry point."""
    app()


if __name__ == "__main__":
    main()
