"""Form variant resolution.

The variant of a movement is never stored. It is derived from the
classification path, and for saved rows from their group ids, by the two
functions in this module. Both edit-mode reconstruction and the live form
go through ``resolve_variant`` so a saved movement always reopens in the
shape it was entered with.
"""

from typing import Optional

from movekit.domain.entities import (
    TaxonomyNode,
    MovementRecord,
    FormVariant,
    ViewMode,
)
from movekit.domain.taxonomy import Taxonomy

# Subcategories created before concepts carried a variant_override.
SUBCONTRACT_SUBCATEGORY_ID = "f40a8fda-69e6-4e81-bc8a-464359cd8498"
PERSONNEL_SUBCATEGORY_ID = "7ef27d3f-ef17-49c3-a392-55282b3576ff"

LEGACY_VARIANT_OVERRIDES = {
    SUBCONTRACT_SUBCATEGORY_ID: FormVariant.SUBCONTRATOS,
    PERSONNEL_SUBCATEGORY_ID: FormVariant.PERSONAL,
}

# Category names are matched exactly for contributions and by substring otherwise.
# TODO: drop the name match once every member-contribution category is tagged
# with the aportes_propios view mode.
THIRD_PARTY_CONTRIBUTION_LABELS = ("Aportes de Terceros",)
MEMBER_CONTRIBUTION_LABELS = ("Aportes Propios",)
WITHDRAWAL_MARKER = "retiro"
MATERIALS_MARKER = "material"


def variant_override(
    subcategory_node: Optional[TaxonomyNode] = None, subcategory_id: Optional[str] = None
) -> Optional[FormVariant]:
    """Variant forced by a subcategory, if any."""
    if subcategory_node is not None:
        if subcategory_node.variant_override is not None:
            return subcategory_node.variant_override
        subcategory_id = subcategory_node.id
    if subcategory_id is None:
        return None
    return LEGACY_VARIANT_OVERRIDES.get(subcategory_id)


def _contribution_variant(category_node: TaxonomyNode) -> FormVariant:
    if category_node.name.strip() in MEMBER_CONTRIBUTION_LABELS:
        return FormVariant.APORTES_PROPIOS
    return FormVariant.APORTES


def resolve_variant(
    type_node: Optional[TaxonomyNode],
    category_node: Optional[TaxonomyNode] = None,
    subcategory_node: Optional[TaxonomyNode] = None,
    subcategory_id: Optional[str] = None,
) -> FormVariant:
    """Map a classification selection to the form variant it requires.

    Pure function; safe to call on every classification change.

    Args:
        type_node: Selected type (root concept)
        category_node: Selected category, if any
        subcategory_node: Selected subcategory node, if known
        subcategory_id: Selected subcategory id when the node is not available

    Returns:
        The form variant, NORMAL when nothing more specific applies
    """
    override = variant_override(subcategory_node, subcategory_id)
    if override is not None:
        return override

    type_mode = type_node.effective_view_mode if type_node is not None else ViewMode.NORMAL
    if type_mode == ViewMode.CONVERSION:
        return FormVariant.CONVERSION
    if type_mode == ViewMode.TRANSFER:
        return FormVariant.TRANSFER

    if category_node is None:
        return FormVariant.NORMAL

    category_mode = category_node.effective_view_mode
    category_name = category_node.name.lower()

    if category_mode == ViewMode.APORTES_PROPIOS:
        return FormVariant.APORTES_PROPIOS
    if category_mode == ViewMode.APORTES or (
        category_mode == ViewMode.NORMAL and type_mode == ViewMode.APORTES
    ):
        return _contribution_variant(category_node)
    if category_mode == ViewMode.RETIROS_PROPIOS or WITHDRAWAL_MARKER in category_name:
        return FormVariant.RETIROS_PROPIOS
    if category_mode == ViewMode.MATERIALES or MATERIALS_MARKER in category_name:
        return FormVariant.MATERIALES
    return FormVariant.NORMAL


def resolve_classification(
    taxonomy: Taxonomy,
    type_id: Optional[str],
    category_id: Optional[str] = None,
    subcategory_id: Optional[str] = None,
) -> FormVariant:
    """Resolve a variant from node ids; unknown ids contribute nothing."""
    return resolve_variant(
        taxonomy.get(type_id),
        taxonomy.get(category_id),
        taxonomy.get(subcategory_id),
        subcategory_id=subcategory_id,
    )


def derive_record_variant(record: MovementRecord, taxonomy: Taxonomy) -> FormVariant:
    """Re-derive the variant of a saved movement.

    Group ids only ever appear on conversion and transfer rows, so they are
    checked first; everything else follows ``resolve_variant``.
    """
    if record.conversion_group_id:
        return FormVariant.CONVERSION
    if record.transfer_group_id:
        return FormVariant.TRANSFER
    variant = resolve_classification(
        taxonomy, record.type_id, record.category_id, record.subcategory_id
    )
    if variant.is_dual_entry:
        # A single row cannot be reopened as one side of a pair
        return FormVariant.NORMAL
    return variant
