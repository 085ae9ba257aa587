"""Concept management commands."""

import click
from movekit.cli.error_handling import handle_domain_error
from movekit.domain.entities import FormVariant, ViewMode
from movekit.domain.taxonomy import TaxonomyService


def print_concept_tree(concepts: list[dict], indent: int = 0) -> None:
    """Recursively print concept tree."""
    for concept in concepts:
        prefix = "  " * indent
        tags = []
        if concept.get("view_mode"):
            tags.append(concept["view_mode"])
        if concept.get("variant_override"):
            tags.append(f"-> {concept['variant_override'].value}")
        tag_str = f" [{', '.join(tags)}]" if tags else ""
        click.echo(f"{prefix}{concept['name']}{tag_str} (ID: {concept['id']})")
        if concept.get("children"):
            print_concept_tree(concept["children"], indent + 1)


@click.group()
def concept_group():
    """Manage movement concepts (types, categories, subcategories)."""
    pass


@concept_group.command("list")
@click.pass_context
def list_concepts(ctx):
    """List concepts visible to the organization in tree format."""
    db = ctx.obj["db"]
    service = TaxonomyService(db)

    tree = service.get_concept_tree(ctx.obj["organization_id"])
    if not tree:
        click.echo("No concepts found. Run 'init-concepts' to create default concepts.")
        return

    click.echo("\nConcepts:")
    print_concept_tree(tree)


@concept_group.command("create")
@click.argument("name")
@click.option("--parent", help="Parent concept path (e.g., 'Egresos > Mano de Obra')")
@click.option(
    "--view-mode",
    type=click.Choice([m.value for m in ViewMode]),
    help="Form shape hint for this concept",
)
@click.option(
    "--override",
    type=click.Choice([v.value for v in FormVariant]),
    help="Variant forced when this concept is selected as subcategory",
)
@click.option("--system", is_flag=True, help="Create a concept shared by every organization")
@click.pass_context
def create_concept(ctx, name: str, parent: str | None, view_mode: str | None, override: str | None, system: bool):
    """Create a new concept."""
    db = ctx.obj["db"]
    service = TaxonomyService(db)

    try:
        concept_id = service.create_concept(
            name=name,
            parent_path=parent,
            view_mode=view_mode,
            organization_id=None if system else ctx.obj["organization_id"],
            variant_override=FormVariant(override) if override else None,
        )
        parent_str = f" under '{parent}'" if parent else ""
        click.echo(f"Created concept '{name}'{parent_str} (ID: {concept_id})")
    except ValueError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register concept commands with main CLI."""
    cli.add_command(concept_group, name="concept")
