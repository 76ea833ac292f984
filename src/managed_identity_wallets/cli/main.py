"""CLI entry point for managed-identity-wallets.

Invoked as::

    miw [OPTIONS] COMMAND [ARGS]...

or, during development::

    python -m managed_identity_wallets.cli.main

Commands
--------
wallet create|list|show|delete      Manage wallets
did show|add-service|update-service|remove-service
                                    Inspect DID documents and their services
credential store|issue              Store or issue verifiable credentials
presentation create                 Create a signed presentation
sign                                Sign a message with a wallet key

The agent connection and wallet policy come from ``MIW_*`` environment
variables (see :class:`managed_identity_wallets.config.Settings`).
"""
from __future__ import annotations

import json
import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import TypeVar

import click
from pydantic import BaseModel, ValidationError
from rich.console import Console
from rich.table import Table

from managed_identity_wallets.agent.acapy import AcaPyClient
from managed_identity_wallets.agent.client import AgentClient
from managed_identity_wallets.config import Settings, get_settings
from managed_identity_wallets.credentials.models import (
    VerifiableCredential,
    VerifiableCredentialRequest,
)
from managed_identity_wallets.did.document import DidServiceUpdateRequest, ServiceEntry
from managed_identity_wallets.errors import WalletServiceError
from managed_identity_wallets.services import WalletServices, build_services

console = Console()

_DEFAULT_STORE_DIR = Path("~/.managed-identity-wallets/wallets")

ModelT = TypeVar("ModelT", bound=BaseModel)


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------


def _make_agent(settings: Settings) -> AgentClient:
    return AcaPyClient(
        admin_url=settings.agent_admin_url,
        api_key=settings.agent_api_key,
        network_identifier=settings.network_identifier,
        timeout=settings.agent_timeout_seconds,
    )


def _services(ctx: click.Context) -> WalletServices:
    settings: Settings = ctx.obj["settings"]
    if "services" not in ctx.obj:
        agent = _make_agent(settings)
        close = getattr(agent, "close", None)
        if close is not None:
            ctx.find_root().call_on_close(close)
        ctx.obj["services"] = build_services(settings, agent=agent)
    return ctx.obj["services"]


@contextmanager
def _domain_errors() -> Iterator[None]:
    """Print domain errors with their HTTP status hint and exit with code 1."""
    try:
        yield
    except WalletServiceError as exc:
        console.print(f"[red]Error ({exc.status_code}):[/red] {exc.message}")
        sys.exit(1)


def _read_json(path: str) -> dict[str, object]:
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        console.print(f"[red]Error:[/red] could not read JSON from {path}: {exc}")
        sys.exit(1)
    if not isinstance(data, dict):
        console.print(f"[red]Error:[/red] {path} must contain a JSON object.")
        sys.exit(1)
    return data


def _load_model(model: type[ModelT], path: str) -> ModelT:
    try:
        return model.model_validate(_read_json(path))
    except ValidationError as exc:
        console.print(f"[red]Error:[/red] {path} is not a valid {model.__name__}:")
        for error in exc.errors():
            location = ".".join(str(part) for part in error["loc"]) or "<root>"
            console.print(f"  {location}: {error['msg']}", markup=False)
        sys.exit(1)


def _print_json(data: object) -> None:
    console.print_json(json.dumps(data, default=str))


# ------------------------------------------------------------------
# Root group
# ------------------------------------------------------------------


@click.group()
@click.version_option(package_name="managed-identity-wallets")
@click.option(
    "--store-dir",
    type=click.Path(file_okay=False),
    default=None,
    help="Directory of the wallet store (defaults to MIW_WALLET_STORE_PATH).",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]),
    default=None,
    help="Logging level (defaults to MIW_LOG_LEVEL).",
)
@click.pass_context
def cli(ctx: click.Context, store_dir: str | None, log_level: str | None) -> None:
    """Managed SSI wallets, DID documents and verifiable credentials"""
    settings = get_settings()
    store_path = (
        Path(store_dir)
        if store_dir
        else settings.wallet_store_path or _DEFAULT_STORE_DIR.expanduser()
    )
    settings = settings.model_copy(
        update={"wallet_store_path": store_path, "log_level": log_level or settings.log_level}
    )
    logging.basicConfig(level=getattr(logging, settings.log_level))
    ctx.ensure_object(dict)
    ctx.obj["settings"] = settings


@cli.command(name="version")
def version_command() -> None:
    """Show detailed version information."""
    from managed_identity_wallets import __version__

    console.print(f"[bold]managed-identity-wallets[/bold] v{__version__}")


# ------------------------------------------------------------------
# wallet
# ------------------------------------------------------------------


@cli.group(name="wallet")
def wallet_group() -> None:
    """Manage wallets."""


@wallet_group.command(name="create")
@click.argument("bpn")
@click.option("--name", "-n", required=True, help="Display name of the wallet.")
@click.pass_context
def wallet_create_command(ctx: click.Context, bpn: str, name: str) -> None:
    """Create a wallet for BPN."""
    with _domain_errors():
        wallet = _services(ctx).wallets.create_wallet(bpn, name)
    console.print(f"[green]Created[/green] wallet [bold]{wallet.bpn}[/bold]")
    console.print(f"  DID:        {wallet.did}")
    console.print(f"  Public key: {wallet.public_key}")
    console.print(f"  Created:    {wallet.created_at.isoformat()}")


@wallet_group.command(name="list")
@click.pass_context
def wallet_list_command(ctx: click.Context) -> None:
    """List all wallets."""
    with _domain_errors():
        wallets = _services(ctx).wallets.get_all()

    if not wallets:
        console.print("[yellow]No wallets found.[/yellow]")
        return

    table = Table(title="Wallets", show_header=True)
    table.add_column("BPN", style="cyan")
    table.add_column("Name")
    table.add_column("DID")
    table.add_column("Created")
    for wallet in wallets:
        table.add_row(wallet.bpn, wallet.name, wallet.did, wallet.created_at.isoformat())

    console.print(table)
    console.print(f"\nTotal: {len(wallets)} wallet(s)")


@wallet_group.command(name="show")
@click.argument("identifier")
@click.option("--with-credentials", is_flag=True, default=False, help="Include stored credentials.")
@click.pass_context
def wallet_show_command(ctx: click.Context, identifier: str, with_credentials: bool) -> None:
    """Show the wallet with BPN or DID IDENTIFIER."""
    with _domain_errors():
        wallet = _services(ctx).wallets.get_wallet(identifier, with_credentials)
    _print_json(wallet.model_dump(mode="json", by_alias=True, exclude_none=True))


@wallet_group.command(name="delete")
@click.argument("identifier")
@click.pass_context
def wallet_delete_command(ctx: click.Context, identifier: str) -> None:
    """Delete the wallet with BPN or DID IDENTIFIER."""
    with _domain_errors():
        deleted = _services(ctx).wallets.delete_wallet(identifier)
    if not deleted:
        console.print(f"[red]Error:[/red] Delete wallet {identifier} has failed!")
        sys.exit(1)
    console.print("[green]Wallet successfully removed![/green]")


# ------------------------------------------------------------------
# did
# ------------------------------------------------------------------


@cli.group(name="did")
def did_group() -> None:
    """Inspect DID documents and manage their services."""


@did_group.command(name="show")
@click.argument("identifier")
@click.pass_context
def did_show_command(ctx: click.Context, identifier: str) -> None:
    """Resolve the DID document of IDENTIFIER."""
    with _domain_errors():
        document = _services(ctx).did_documents.resolve_document(identifier)
    _print_json(document.to_dict())


@did_group.command(name="add-service")
@click.argument("identifier")
@click.option("--id", "service_id", required=True, help="Service id (slug).")
@click.option("--type", "service_type", required=True, help="Service type.")
@click.option("--endpoint", required=True, help="Service endpoint URI.")
@click.pass_context
def did_add_service_command(
    ctx: click.Context, identifier: str, service_id: str, service_type: str, endpoint: str
) -> None:
    """Add a service to the DID document of IDENTIFIER."""
    entry = ServiceEntry(id=service_id, type=service_type, service_endpoint=endpoint)
    with _domain_errors():
        document = _services(ctx).did_documents.add_service(identifier, entry)
    console.print(f"[green]Added[/green] service [bold]{service_id}[/bold]")
    _print_json(document.to_dict())


@did_group.command(name="update-service")
@click.argument("identifier")
@click.argument("service_id")
@click.option("--type", "service_type", required=True, help="Service type.")
@click.option("--endpoint", required=True, help="New service endpoint URI.")
@click.pass_context
def did_update_service_command(
    ctx: click.Context, identifier: str, service_id: str, service_type: str, endpoint: str
) -> None:
    """Update SERVICE_ID in the DID document of IDENTIFIER."""
    patch = DidServiceUpdateRequest(type=service_type, service_endpoint=endpoint)
    with _domain_errors():
        document = _services(ctx).did_documents.update_service(identifier, service_id, patch)
    console.print(f"[green]Updated[/green] service [bold]{service_id}[/bold]")
    _print_json(document.to_dict())


@did_group.command(name="remove-service")
@click.argument("identifier")
@click.argument("service_id")
@click.pass_context
def did_remove_service_command(ctx: click.Context, identifier: str, service_id: str) -> None:
    """Remove SERVICE_ID from the DID document of IDENTIFIER."""
    with _domain_errors():
        _services(ctx).did_documents.remove_service(identifier, service_id)


# ------------------------------------------------------------------
# credential / presentation / sign
# ------------------------------------------------------------------


@cli.group(name="credential")
def credential_group() -> None:
    """Store and issue verifiable credentials."""


@credential_group.command(name="store")
@click.argument("identifier")
@click.argument("credential_file", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def credential_store_command(ctx: click.Context, identifier: str, credential_file: str) -> None:
    """Store the credential in CREDENTIAL_FILE in the wallet IDENTIFIER."""
    credential = _load_model(VerifiableCredential, credential_file)
    with _domain_errors():
        response = _services(ctx).credentials.store_credential(identifier, credential)
    console.print(f"[green]{response.message}[/green]")


@credential_group.command(name="issue")
@click.argument("request_file", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def credential_issue_command(ctx: click.Context, request_file: str) -> None:
    """Issue a credential described by REQUEST_FILE."""
    request = _load_model(VerifiableCredentialRequest, request_file)
    with _domain_errors():
        credential = _services(ctx).credentials.issue_credential(request)
    _print_json(credential.to_dict())


@cli.group(name="presentation")
def presentation_group() -> None:
    """Create verifiable presentations."""


@presentation_group.command(name="create")
@click.argument("holder_identifier")
@click.argument(
    "credential_files", nargs=-1, type=click.Path(exists=True, dir_okay=False)
)
@click.pass_context
def presentation_create_command(
    ctx: click.Context, holder_identifier: str, credential_files: tuple[str, ...]
) -> None:
    """Present the credentials in CREDENTIAL_FILES as HOLDER_IDENTIFIER."""
    credentials = [_load_model(VerifiableCredential, path) for path in credential_files]
    with _domain_errors():
        presentation = _services(ctx).credentials.create_presentation(
            holder_identifier, credentials
        )
    _print_json(presentation.to_dict())


@cli.command(name="sign")
@click.argument("identifier")
@click.argument("message")
@click.pass_context
def sign_command(ctx: click.Context, identifier: str, message: str) -> None:
    """Sign MESSAGE with the key of wallet IDENTIFIER."""
    with _domain_errors():
        response = _services(ctx).signing.sign(identifier, message)
    _print_json(response.model_dump(by_alias=True))


if __name__ == "__main__":
    cli()
