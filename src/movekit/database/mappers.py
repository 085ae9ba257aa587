"""Mapper functions to convert between domain models and SQLAlchemy models.

This layer isolates the conversion logic, so the domain keeps working with
frozen entities while the schema evolves.
"""

from typing import Optional

from movekit.domain import entities as domain
from movekit.database.models import (
    MovementConcept as ORMConcept,
    Movement as ORMMovement,
    MovementRelation as ORMRelation,
    Currency as ORMCurrency,
    Wallet as ORMWallet,
    OrganizationMember as ORMMember,
    PickerOption as ORMPickerOption,
)

# Columns written from a movement payload; ``id`` and ``created_at`` are managed by the gateway.
MOVEMENT_COLUMNS = (
    "organization_id",
    "project_id",
    "movement_date",
    "created_by",
    "description",
    "amount",
    "currency_id",
    "wallet_id",
    "type_id",
    "category_id",
    "subcategory_id",
    "exchange_rate",
    "conversion_group_id",
    "transfer_group_id",
    "contact_id",
    "member_id",
)


def _variant_or_none(value: Optional[str]) -> Optional[domain.FormVariant]:
    if not value:
        return None
    return domain.FormVariant(value)


def concept_to_domain(orm_concept: ORMConcept) -> domain.TaxonomyNode:
    """Convert SQLAlchemy MovementConcept model to domain TaxonomyNode entity."""
    return domain.TaxonomyNode(
        id=orm_concept.id,
        name=orm_concept.name,
        parent_id=orm_concept.parent_id,
        view_mode=orm_concept.view_mode,
        organization_id=orm_concept.organization_id,
        variant_override=_variant_or_none(orm_concept.variant_override),
        created_at=orm_concept.created_at,
    )


def movement_to_domain(orm_movement: ORMMovement) -> domain.MovementRecord:
    """Convert SQLAlchemy Movement model to domain MovementRecord entity."""
    return domain.MovementRecord(
        id=orm_movement.id,
        organization_id=orm_movement.organization_id,
        project_id=orm_movement.project_id,
        movement_date=orm_movement.movement_date,
        created_by=orm_movement.created_by,
        description=orm_movement.description,
        amount=orm_movement.amount,
        currency_id=orm_movement.currency_id,
        wallet_id=orm_movement.wallet_id,
        type_id=orm_movement.type_id,
        category_id=orm_movement.category_id,
        subcategory_id=orm_movement.subcategory_id,
        exchange_rate=orm_movement.exchange_rate,
        conversion_group_id=orm_movement.conversion_group_id,
        transfer_group_id=orm_movement.transfer_group_id,
        contact_id=orm_movement.contact_id,
        member_id=orm_movement.member_id,
        created_at=orm_movement.created_at,
    )


def relation_to_domain(orm_relation: ORMRelation) -> domain.RelationRecord:
    """Convert SQLAlchemy MovementRelation model to domain RelationRecord entity."""
    return domain.RelationRecord(
        id=orm_relation.id,
        movement_id=orm_relation.movement_id,
        relation_kind=domain.RelationKind(orm_relation.relation_kind),
        target_id=orm_relation.target_id,
        amount=orm_relation.amount,
    )


def currency_to_domain(orm_currency: ORMCurrency) -> domain.Currency:
    """Convert SQLAlchemy Currency model to domain Currency entity."""
    return domain.Currency(
        id=orm_currency.id,
        organization_id=orm_currency.organization_id,
        code=orm_currency.code,
        name=orm_currency.name,
    )


def wallet_to_domain(orm_wallet: ORMWallet) -> domain.Wallet:
    """Convert SQLAlchemy Wallet model to domain Wallet entity."""
    return domain.Wallet(
        id=orm_wallet.id,
        organization_id=orm_wallet.organization_id,
        name=orm_wallet.name,
    )


def member_to_domain(orm_member: ORMMember) -> domain.Member:
    """Convert SQLAlchemy OrganizationMember model to domain Member entity."""
    return domain.Member(
        id=orm_member.id,
        organization_id=orm_member.organization_id,
        user_id=orm_member.user_id,
        full_name=orm_member.full_name,
    )


def picker_option_to_domain(orm_option: ORMPickerOption) -> domain.Option:
    """Convert SQLAlchemy PickerOption model to domain Option entity."""
    return domain.Option(id=orm_option.id, label=orm_option.label)
