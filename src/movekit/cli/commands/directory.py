"""Directory management commands: currencies, wallets, members, picker options."""

import click
from movekit.cli.error_handling import handle_domain_error
from movekit.domain.directory import DirectoryService
from movekit.domain.entities import RelationKind


@click.group()
def directory_group():
    """Manage currencies, wallets, members and link targets."""
    pass


@directory_group.command("add-currency")
@click.argument("code")
@click.argument("name")
@click.pass_context
def add_currency(ctx, code: str, name: str):
    """Add a currency (e.g., USD "Dólar")."""
    service = DirectoryService(ctx.obj["db"])
    try:
        currency_id = service.add_currency(ctx.obj["organization_id"], code, name)
        click.echo(f"Created currency '{code.upper()}' (ID: {currency_id})")
    except ValueError as e:
        handle_domain_error(ctx, e)


@directory_group.command("add-wallet")
@click.argument("name")
@click.pass_context
def add_wallet(ctx, name: str):
    """Add a wallet (e.g., "Caja", "Banco")."""
    service = DirectoryService(ctx.obj["db"])
    try:
        wallet_id = service.add_wallet(ctx.obj["organization_id"], name)
        click.echo(f"Created wallet '{name}' (ID: {wallet_id})")
    except ValueError as e:
        handle_domain_error(ctx, e)


@directory_group.command("add-member")
@click.argument("user_id")
@click.argument("full_name")
@click.pass_context
def add_member(ctx, user_id: str, full_name: str):
    """Add a user to the organization."""
    service = DirectoryService(ctx.obj["db"])
    try:
        member_id = service.add_member(ctx.obj["organization_id"], user_id, full_name)
        click.echo(f"Created member '{full_name}' (ID: {member_id})")
    except ValueError as e:
        handle_domain_error(ctx, e)


@directory_group.command("add-option")
@click.argument("project_id")
@click.argument("kind", type=click.Choice([k.value for k in RelationKind]))
@click.argument("label")
@click.pass_context
def add_option(ctx, project_id: str, kind: str, label: str):
    """Add a task, subcontract or personnel entry to a project."""
    service = DirectoryService(ctx.obj["db"])
    try:
        option_id = service.add_option(project_id, RelationKind(kind), label)
        click.echo(f"Created {kind} '{label}' in project {project_id} (ID: {option_id})")
    except ValueError as e:
        handle_domain_error(ctx, e)


@directory_group.command("list")
@click.option("--project", "project_id", help="Also list the link targets of this project")
@click.pass_context
def list_directory(ctx, project_id: str | None):
    """List currencies, wallets and members of the organization."""
    service = DirectoryService(ctx.obj["db"])
    organization_id = ctx.obj["organization_id"]

    click.echo("\nCurrencies:")
    for currency in service.get_currencies(organization_id):
        click.echo(f"  {currency.code} - {currency.name} (ID: {currency.id})")

    click.echo("\nWallets:")
    for wallet in service.get_wallets(organization_id):
        click.echo(f"  {wallet.name} (ID: {wallet.id})")

    click.echo("\nMembers:")
    for member in service.get_members(organization_id):
        click.echo(f"  {member.full_name} <{member.user_id}> (ID: {member.id})")

    if project_id is not None:
        for kind in RelationKind:
            click.echo(f"\n{kind.value.capitalize()} options:")
            for option in service.get_options(project_id, kind):
                click.echo(f"  {option.label} (ID: {option.id})")


def register_commands(cli):
    """Register directory commands with main CLI."""
    cli.add_command(directory_group, name="directory")
