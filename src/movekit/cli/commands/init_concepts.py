"""Initialize the default concept tree."""

import click
from movekit.domain.entities import FormVariant
from movekit.domain.taxonomy import TaxonomyService
from movekit.domain.variants import PERSONNEL_SUBCATEGORY_ID, SUBCONTRACT_SUBCATEGORY_ID


# (name, parent path, view mode, variant override, fixed id); parents come first
INITIAL_CONCEPTS = [
    # Types
    ("Egresos", None, "normal", None, None),
    ("Ingresos", None, "normal", None, None),
    ("Conversión", None, "conversion", None, None),
    ("Transferencias Internas", None, "transfer", None, None),
    ("Aportes", None, "aportes", None, None),
    ("Retiros Propios", None, None, None, None),
    # Egresos categories
    ("Materiales", "Egresos", None, None, None),
    ("Mano de Obra", "Egresos", None, None, None),
    ("Gastos Generales", "Egresos", None, None, None),
    ("Subcontratos", "Egresos > Mano de Obra", None, FormVariant.SUBCONTRATOS, SUBCONTRACT_SUBCATEGORY_ID),
    ("Personal", "Egresos > Mano de Obra", None, FormVariant.PERSONAL, PERSONNEL_SUBCATEGORY_ID),
    # Ingresos categories
    ("Ventas", "Ingresos", None, None, None),
    ("Cobranzas", "Ingresos", None, None, None),
    # Contributions and withdrawals
    ("Aportes de Terceros", "Aportes", "aportes", None, None),
    ("Aportes Propios", "Aportes", "aportes_propios", None, None),
    ("Retiros de Socios", "Retiros Propios", "retiros_propios", None, None),
]


@click.command("init-concepts")
@click.option("--force", is_flag=True, help="Create the default tree even if concepts exist")
@click.pass_context
def init_concepts(ctx, force: bool):
    """Initialize database with the default concept tree."""
    db = ctx.obj["db"]
    service = TaxonomyService(db)

    existing = service.list_concepts()
    if existing and not force:
        click.echo("Concepts already exist. Use --force to overwrite.")
        return

    click.echo("Creating initial concept tree...")

    created = 0
    errors = 0
    for name, parent_path, view_mode, override, concept_id in INITIAL_CONCEPTS:
        try:
            service.create_concept(
                name=name,
                parent_path=parent_path,
                view_mode=view_mode,
                variant_override=override,
                concept_id=concept_id,
            )
            created += 1
        except ValueError as e:
            click.echo(f"Warning: Could not create concept '{name}': {e}", err=True)
            errors += 1

    if errors == 0:
        click.echo(f"Successfully created {created} concepts.")
    else:
        click.echo(f"Created {created} concepts with {errors} errors.")


def register_commands(cli):
    """Register init-concepts command with main CLI."""
    cli.add_command(init_concepts)
