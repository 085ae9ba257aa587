"""CLI helpers that turn names typed by the user into ids."""

from __future__ import annotations

from decimal import Decimal

import click
from movekit.domain.directory import DirectoryService
from movekit.domain.entities import RelationKind
from movekit.domain.taxonomy import ClassificationPath, Taxonomy
from movekit.utils.amount_parser import parse_amount
from movekit.utils.date_parser import parse_date


def _fail(ctx: click.Context, message: str) -> None:
    click.echo(f"Error: {message}", err=True)
    ctx.exit(1)


def resolve_currency_or_exit(
    ctx: click.Context, directory: DirectoryService, organization_id: str, code: str
) -> str:
    """Resolve a currency code (e.g., 'USD') to its ID."""
    currency = directory.find_currency(organization_id, code)
    if currency is None:
        _fail(ctx, f"Currency '{code}' not found")
    return currency.id


def resolve_wallet_or_exit(
    ctx: click.Context, directory: DirectoryService, organization_id: str, name: str
) -> str:
    """Resolve a wallet name (case-insensitive) to its ID."""
    wallet = directory.find_wallet(organization_id, name)
    if wallet is None:
        _fail(ctx, f"Wallet '{name}' not found")
    return wallet.id


def resolve_member_or_exit(
    ctx: click.Context, directory: DirectoryService, organization_id: str, user_id: str
) -> str:
    """Resolve a member's user id to the member ID."""
    member = directory.find_member(organization_id, user_id)
    if member is None:
        _fail(ctx, f"User '{user_id}' is not a member of organization '{organization_id}'")
    return member.id


def resolve_option_or_exit(
    ctx: click.Context,
    directory: DirectoryService,
    project_id: str | None,
    kind: RelationKind,
    value: str,
) -> str:
    """Resolve a task/subcontract/personnel option by ID or label."""
    if project_id is None:
        _fail(ctx, "A --project is required to link a movement")
    for option in directory.get_options(project_id, kind):
        if value in (option.id, option.label):
            return option.id
    _fail(ctx, f"No {kind.value} '{value}' in project '{project_id}'")


def resolve_path_or_exit(ctx: click.Context, taxonomy: Taxonomy, path: str) -> ClassificationPath:
    """Resolve 'Type > Category > Subcategory' to node IDs."""
    try:
        return taxonomy.resolve_path(path)
    except ValueError as e:
        _fail(ctx, str(e))


def parse_date_or_exit(ctx: click.Context, value: str):
    try:
        return parse_date(value)
    except ValueError as e:
        _fail(ctx, f"Invalid date format: {e}")


def parse_amount_or_exit(ctx: click.Context, value: str) -> Decimal:
    try:
        return parse_amount(value)
    except ValueError as e:
        _fail(ctx, f"Invalid amount format: {e}")
