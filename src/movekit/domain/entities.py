"""Domain model entities for movekit.

These are pure data classes representing business concepts, independent of
database schema. Rows read from storage are converted into these entities by
the mappers in the database layer.
"""

from dataclasses import dataclass
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Optional


class ViewMode(str, Enum):
    """Form shape hint carried by a taxonomy node."""

    NORMAL = "normal"
    CONVERSION = "conversion"
    TRANSFER = "transfer"
    APORTES = "aportes"
    APORTES_PROPIOS = "aportes_propios"
    RETIROS_PROPIOS = "retiros_propios"
    MATERIALES = "materiales"

    @classmethod
    def parse(cls, value: Optional[str]) -> "ViewMode":
        """Return the effective view mode for a raw tag.

        Unknown or empty tags fall back to NORMAL.
        """
        if value is None:
            return cls.NORMAL
        try:
            return cls(value.strip())
        except ValueError:
            return cls.NORMAL


class FormVariant(str, Enum):
    """The nine structurally different movement shapes."""

    NORMAL = "normal"
    CONVERSION = "conversion"
    TRANSFER = "transfer"
    APORTES = "aportes"
    APORTES_PROPIOS = "aportes_propios"
    RETIROS_PROPIOS = "retiros_propios"
    MATERIALES = "materiales"
    SUBCONTRATOS = "subcontratos"
    PERSONAL = "personal"

    @property
    def is_dual_entry(self) -> bool:
        """True for variants persisted as a linked pair of rows."""
        return self in (FormVariant.CONVERSION, FormVariant.TRANSFER)


class RelationKind(str, Enum):
    """Target of an auxiliary relation row."""

    TASK = "task"
    SUBCONTRACT = "subcontract"
    PERSONNEL = "personnel"


class NotificationKind(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class TaxonomyNode:
    """Classification concept (type, category or subcategory)."""

    id: str
    name: str
    parent_id: Optional[str]
    view_mode: Optional[str] = None
    organization_id: Optional[str] = None
    variant_override: Optional[FormVariant] = None
    created_at: Optional[datetime] = None

    @property
    def effective_view_mode(self) -> ViewMode:
        return ViewMode.parse(self.view_mode)

    @property
    def is_type(self) -> bool:
        return self.parent_id is None


@dataclass(frozen=True)
class MovementRecord:
    """Persisted ledger row."""

    id: str
    organization_id: str
    movement_date: date
    created_by: str
    amount: Decimal
    currency_id: str
    wallet_id: str
    type_id: str
    project_id: Optional[str] = None
    description: Optional[str] = None
    category_id: Optional[str] = None
    subcategory_id: Optional[str] = None
    exchange_rate: Optional[Decimal] = None
    conversion_group_id: Optional[str] = None
    transfer_group_id: Optional[str] = None
    contact_id: Optional[str] = None
    member_id: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def group_id(self) -> Optional[str]:
        """Shared id of a conversion or transfer pair, if any."""
        return self.conversion_group_id or self.transfer_group_id


@dataclass(frozen=True)
class RelationRecord:
    """Auxiliary link between a movement and a task, subcontract or personnel entry."""

    id: str
    movement_id: str
    relation_kind: RelationKind
    target_id: str
    amount: Optional[Decimal] = None


@dataclass(frozen=True)
class Currency:
    id: str
    organization_id: str
    code: str
    name: str


@dataclass(frozen=True)
class Wallet:
    id: str
    organization_id: str
    name: str


@dataclass(frozen=True)
class Member:
    """Organization member. ``created_by`` on movements stores ``id``, not ``user_id``."""

    id: str
    organization_id: str
    user_id: str
    full_name: str


@dataclass(frozen=True)
class Option:
    """Picker entry for tasks, subcontracts and personnel."""

    id: str
    label: str


@dataclass(frozen=True)
class OrphanedGroup:
    """A conversion/transfer group that does not hold exactly two rows."""

    group_id: str
    kind: FormVariant
    movement_ids: tuple[str, ...]

    @property
    def row_count(self) -> int:
        return len(self.movement_ids)
