"""Movement commands: add, edit, show, list, reconcile."""

from typing import Any

import click
from movekit.cli.error_handling import handle_domain_error
from movekit.cli.resolution import (
    parse_amount_or_exit,
    parse_date_or_exit,
    resolve_currency_or_exit,
    resolve_member_or_exit,
    resolve_option_or_exit,
    resolve_path_or_exit,
    resolve_wallet_or_exit,
)
from movekit.domain.coordinator import MultiFormCoordinator
from movekit.domain.directory import DirectoryService
from movekit.domain.entities import MovementRecord, NotificationKind
from movekit.domain.errors import IncompleteGroupError, PersistenceError
from movekit.domain.movement import MovementService, SubmitResult
from movekit.domain.sinks import LoggingInvalidator, Notifier
from movekit.domain.taxonomy import Taxonomy


class EchoNotifier(Notifier):
    """Prints notifications to the terminal."""

    def notify(self, kind: NotificationKind, title: str, message: str) -> None:
        click.echo(f"{title}: {message}", err=kind == NotificationKind.ERROR)


def movement_field_options(func):
    """Options shared by 'movement add' and 'movement edit'."""
    options = [
        click.option("--date", "date_str", help="Movement date (YYYY-MM-DD, DD/MM/YYYY, 'today', ...)"),
        click.option("--amount", help="Amount (source amount of a conversion)"),
        click.option("--currency", help="Currency code (source currency of a conversion)"),
        click.option("--wallet", help="Wallet name (source wallet of a conversion or transfer)"),
        click.option("--to-currency", help="Destination currency code of a conversion"),
        click.option("--to-wallet", help="Destination wallet of a conversion or transfer"),
        click.option("--to-amount", help="Destination amount of a conversion"),
        click.option("--exchange-rate", help="Exchange rate"),
        click.option("--description", help="Description"),
        click.option("--member", help="User id of the contributing/withdrawing member"),
        click.option("--contact", help="Contact id of a third-party contribution"),
        click.option("--link", help="Task, subcontract or personnel entry (ID or label)"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _collect_fields(
    ctx: click.Context, directory: DirectoryService, organization_id: str, opts: dict[str, Any]
) -> list[tuple[str, Any]]:
    """Translate command options into (field, value) edits."""
    fields: list[tuple[str, Any]] = []
    if opts["date_str"] is not None:
        fields.append(("movement_date", parse_date_or_exit(ctx, opts["date_str"])))
    if opts["currency"] is not None:
        fields.append(("currency_id", resolve_currency_or_exit(ctx, directory, organization_id, opts["currency"])))
    if opts["wallet"] is not None:
        fields.append(("wallet_id", resolve_wallet_or_exit(ctx, directory, organization_id, opts["wallet"])))
    if opts["amount"] is not None:
        fields.append(("amount", parse_amount_or_exit(ctx, opts["amount"])))
    if opts["to_currency"] is not None:
        fields.append(("currency_id_to", resolve_currency_or_exit(ctx, directory, organization_id, opts["to_currency"])))
    if opts["to_wallet"] is not None:
        fields.append(("wallet_id_to", resolve_wallet_or_exit(ctx, directory, organization_id, opts["to_wallet"])))
    if opts["to_amount"] is not None:
        fields.append(("amount_to", parse_amount_or_exit(ctx, opts["to_amount"])))
    if opts["exchange_rate"] is not None:
        fields.append(("exchange_rate", parse_amount_or_exit(ctx, opts["exchange_rate"])))
    if opts["description"] is not None:
        fields.append(("description", opts["description"]))
    if opts["member"] is not None:
        fields.append(("member_id", resolve_member_or_exit(ctx, directory, organization_id, opts["member"])))
    if opts["contact"] is not None:
        fields.append(("contact_id", opts["contact"]))
    return fields


def _fill_and_submit(
    ctx: click.Context,
    service: MovementService,
    coordinator: MultiFormCoordinator,
    opts: dict[str, Any],
) -> SubmitResult:
    organization_id = coordinator.organization_id
    fields = _collect_fields(ctx, service.directory, organization_id, opts)
    try:
        for name, value in fields:
            coordinator.edit(name, value)
        if opts["link"] is not None:
            kind = coordinator.active_form.RELATION_KIND
            if kind is None:
                # Raises the "cannot be linked" validation error
                coordinator.select_relation(opts["link"])
            project_id = coordinator.active_form.shared.project_id
            coordinator.select_relation(
                resolve_option_or_exit(ctx, service.directory, project_id, kind, opts["link"])
            )
        return service.submit(coordinator)
    except (PersistenceError, IncompleteGroupError):
        # Already reported by the notifier
        ctx.exit(1)
    except ValueError as e:
        handle_domain_error(ctx, e)


def _display_names(service: MovementService, organization_id: str) -> dict[str, str]:
    names = {c.id: c.code for c in service.directory.get_currencies(organization_id)}
    names.update({w.id: w.name for w in service.directory.get_wallets(organization_id)})
    names.update({m.id: m.full_name for m in service.directory.get_members(organization_id)})
    return names


def format_movement(record: MovementRecord, taxonomy: Taxonomy, names: dict[str, str]) -> str:
    """One-line rendering of a movement row."""
    path = taxonomy.format_path(record.subcategory_id or record.category_id or record.type_id)
    currency = names.get(record.currency_id, record.currency_id)
    wallet = names.get(record.wallet_id, record.wallet_id)
    line = f"{record.id}  {record.movement_date}  {record.amount:>12,.2f} {currency:<4} {wallet:<12} {path}"
    if record.description:
        line += f'  "{record.description}"'
    if record.group_id:
        line += f"  [group {record.group_id}]"
    return line


def _echo_result(ctx: click.Context, service: MovementService, result: SubmitResult, verb: str) -> None:
    organization_id = ctx.obj["organization_id"]
    taxonomy = service.taxonomy_service.load_taxonomy(organization_id)
    names = _display_names(service, organization_id)
    click.echo(f"Variant: {result.variant.value}")
    for record in result.records:
        click.echo(f"{verb} movement {format_movement(record, taxonomy, names)}")
    if result.link_error is not None:
        click.echo(f"Warning: {result.link_error}", err=True)


def _service(ctx: click.Context) -> MovementService:
    return MovementService(ctx.obj["db"], invalidator=LoggingInvalidator(), notifier=EchoNotifier())


@click.group()
def movement_group():
    """Enter, edit and review movements."""
    pass


@movement_group.command("add")
@click.option("--type", "concept_path", required=True, help="Concept path (e.g., 'Egresos > Materiales')")
@click.option("--project", "project_id", help="Project the movement is booked to")
@movement_field_options
@click.pass_context
def add_movement(ctx, concept_path: str, project_id: str | None, **opts):
    """Add a movement.

    The concept path decides the movement shape: conversions and transfers
    are stored as two linked rows, everything else as one row.

    Examples:
        movekit movement add --type "Egresos > Materiales" --amount 1500 --currency USD --wallet Caja
        movekit movement add --type "Conversión" --currency USD --wallet Caja --amount 100 \\
            --to-currency ARS --to-wallet Banco --to-amount 35000
    """
    service = _service(ctx)
    organization_id = ctx.obj["organization_id"]
    coordinator = service.new_form(organization_id, user_id=ctx.obj["user_id"], project_id=project_id)

    path = resolve_path_or_exit(ctx, coordinator.taxonomy, concept_path)
    coordinator.select_classification(path.type_id, path.category_id, path.subcategory_id)

    result = _fill_and_submit(ctx, service, coordinator, opts)
    _echo_result(ctx, service, result, "Created")


@movement_group.command("edit")
@click.argument("movement_id")
@click.option("--type", "concept_path", help="New concept path")
@movement_field_options
@click.pass_context
def edit_movement(ctx, movement_id: str, concept_path: str | None, **opts):
    """Edit a movement.

    Only the given fields change. Editing either row of a conversion or
    transfer updates both rows.
    """
    service = _service(ctx)
    try:
        coordinator = service.open_for_edit(movement_id)
    except ValueError as e:
        handle_domain_error(ctx, e)

    if concept_path is not None:
        path = resolve_path_or_exit(ctx, coordinator.taxonomy, concept_path)
        coordinator.select_classification(path.type_id, path.category_id, path.subcategory_id)

    result = _fill_and_submit(ctx, service, coordinator, opts)
    _echo_result(ctx, service, result, "Updated")


@movement_group.command("show")
@click.argument("movement_id")
@click.pass_context
def show_movement(ctx, movement_id: str):
    """Show a movement as it would be opened for editing."""
    service = _service(ctx)
    try:
        coordinator = service.open_for_edit(movement_id)
    except ValueError as e:
        handle_domain_error(ctx, e)

    form = coordinator.active_form
    names = _display_names(service, coordinator.organization_id)
    click.echo(f"Movement {movement_id}")
    click.echo(f"  Variant: {coordinator.active_variant.value}")
    click.echo(f"  Concept: {coordinator.taxonomy.format_classification(coordinator.classification)}")
    for name in form.field_names():
        value = form.get(name)
        if value is None:
            continue
        click.echo(f"  {name}: {names.get(value, value) if isinstance(value, str) else value}")
    if form.RELATION_KIND is not None and form.relation_target_id:
        click.echo(f"  {form.RELATION_KIND.value}: {form.relation_target_id}")


@movement_group.command("list")
@click.option("--project", "project_id", help="Only movements of this project")
@click.pass_context
def list_movements(ctx, project_id: str | None):
    """List movements of the organization, newest first."""
    service = _service(ctx)
    organization_id = ctx.obj["organization_id"]

    movements = service.list_movements(organization_id, project_id)
    if not movements:
        click.echo("No movements found.")
        return

    taxonomy = service.taxonomy_service.load_taxonomy(organization_id)
    names = _display_names(service, organization_id)
    click.echo(f"\nFound {len(movements)} movement(s):")
    for record in movements:
        click.echo(format_movement(record, taxonomy, names))


@movement_group.command("reconcile")
@click.pass_context
def reconcile(ctx):
    """Report conversion/transfer groups that do not hold exactly two rows.

    Exits with status 1 when a broken group is found. Nothing is repaired.
    """
    service = _service(ctx)
    orphaned = service.reconcile_groups(ctx.obj["organization_id"])
    if not orphaned:
        click.echo("All conversion and transfer groups are complete.")
        return

    click.echo(f"Found {len(orphaned)} incomplete group(s):", err=True)
    for group in orphaned:
        click.echo(
            f"  {group.kind.value} {group.group_id}: {group.row_count} row(s) "
            f"[{', '.join(group.movement_ids)}]",
            err=True,
        )
    ctx.exit(1)


def register_commands(cli):
    """Register movement commands with main CLI."""
    cli.add_command(movement_group, name="movement")
