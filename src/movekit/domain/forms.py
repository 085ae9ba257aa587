"""Per-variant movement form states.

Each FormVariant has one form class. Every form embeds the same
``SharedFields`` block (date, creator, description, classification path,
project, currency, wallet, amount, exchange rate) and adds the fields only
its shape has. A class lists the shared fields it actually carries; the
coordinator skips the others when propagating values between forms.
"""

from dataclasses import dataclass, field, replace
from datetime import date
from decimal import Decimal
from typing import Any, ClassVar, Optional

from movekit.domain.entities import FormVariant, RelationKind

MIN_AMOUNT = Decimal("0.01")

SHARED_FIELD_NAMES = (
    "movement_date",
    "created_by",
    "description",
    "type_id",
    "category_id",
    "subcategory_id",
    "project_id",
    "currency_id",
    "wallet_id",
    "amount",
    "exchange_rate",
)
CLASSIFICATION_FIELDS = ("type_id", "category_id", "subcategory_id")


@dataclass
class SharedFields:
    """Values common to every movement shape."""

    movement_date: Optional[date] = None
    created_by: Optional[str] = None
    description: Optional[str] = None
    type_id: Optional[str] = None
    category_id: Optional[str] = None
    subcategory_id: Optional[str] = None
    project_id: Optional[str] = None
    currency_id: Optional[str] = None
    wallet_id: Optional[str] = None
    amount: Optional[Decimal] = None
    exchange_rate: Optional[Decimal] = None


def is_empty(value: Any) -> bool:
    """Empty means unset: None or a blank string."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


@dataclass
class MovementForm:
    """Base of the per-variant form states."""

    variant: ClassVar[FormVariant]
    SHARED_FIELDS: ClassVar[tuple[str, ...]] = SHARED_FIELD_NAMES
    EXTRA_FIELDS: ClassVar[tuple[str, ...]] = ()
    # Variant-facing names for shared fields, e.g. amount_from -> amount
    ALIASES: ClassVar[dict[str, str]] = {}
    REQUIRED: ClassVar[tuple[str, ...]] = (
        "movement_date",
        "created_by",
        "type_id",
        "currency_id",
        "wallet_id",
    )
    AMOUNT_FIELDS: ClassVar[tuple[str, ...]] = ("amount",)
    RELATION_KIND: ClassVar[Optional[RelationKind]] = None
    DEFAULT_DESCRIPTION: ClassVar[Optional[str]] = None

    shared: SharedFields = field(default_factory=SharedFields)
    # field name -> revision of the last user edit
    edits: dict[str, int] = field(default_factory=dict)
    relation_target_id: Optional[str] = None

    @classmethod
    def field_names(cls) -> tuple[str, ...]:
        return cls.SHARED_FIELDS + cls.EXTRA_FIELDS

    @classmethod
    def canonical(cls, name: str) -> str:
        """Resolve an alias to the stored field name."""
        return cls.ALIASES.get(name, name)

    @classmethod
    def has_field(cls, name: str) -> bool:
        return cls.canonical(name) in cls.field_names()

    def get(self, name: str) -> Any:
        name = self.canonical(name)
        if name in self.SHARED_FIELDS:
            return getattr(self.shared, name)
        if name in self.EXTRA_FIELDS:
            return getattr(self, name)
        raise KeyError(f"{self.variant.value} form has no field '{name}'")

    def set(self, name: str, value: Any) -> None:
        name = self.canonical(name)
        if name in self.SHARED_FIELDS:
            setattr(self.shared, name, value)
        elif name in self.EXTRA_FIELDS:
            setattr(self, name, value)
        else:
            raise KeyError(f"{self.variant.value} form has no field '{name}'")

    def is_empty(self, name: str) -> bool:
        return is_empty(self.get(name))

    def values(self) -> dict[str, Any]:
        return {name: self.get(name) for name in self.field_names()}

    def copy(self) -> "MovementForm":
        return replace(self, shared=replace(self.shared), edits=dict(self.edits))

    def _display_name(self, name: str) -> str:
        for alias, target in self.ALIASES.items():
            if target == name:
                return alias
        return name

    def validate(self) -> dict[str, str]:
        """Check this form's schema.

        Returns:
            Mapping of field name to error message; empty when valid
        """
        errors: dict[str, str] = {}
        for name in self.REQUIRED:
            if self.is_empty(name):
                errors[self._display_name(self.canonical(name))] = REQUIRED_MESSAGES.get(
                    name, f"{name} is required"
                )
        for name in self.AMOUNT_FIELDS:
            value = self.get(name)
            if value is None or Decimal(value) < MIN_AMOUNT:
                errors[self._display_name(self.canonical(name))] = "Amount must be greater than 0"
        rate = self.get("exchange_rate") if self.has_field("exchange_rate") else None
        if rate is not None and Decimal(rate) <= 0:
            errors["exchange_rate"] = "Exchange rate must be greater than 0"
        self._validate_extra(errors)
        return errors

    def _validate_extra(self, errors: dict[str, str]) -> None:
        pass


REQUIRED_MESSAGES = {
    "movement_date": "Date is required",
    "created_by": "Creator is required",
    "type_id": "Type is required",
    "category_id": "Category is required",
    "currency_id": "Currency is required",
    "wallet_id": "Wallet is required",
    "currency_id_from": "Source currency is required",
    "wallet_id_from": "Source wallet is required",
    "currency_id_to": "Destination currency is required",
    "wallet_id_to": "Destination wallet is required",
    "member_id": "Member is required",
}


@dataclass
class NormalForm(MovementForm):
    variant: ClassVar[FormVariant] = FormVariant.NORMAL


@dataclass
class ConversionForm(MovementForm):
    """Exchange between two currencies; the shared currency/wallet/amount are the source side."""

    variant: ClassVar[FormVariant] = FormVariant.CONVERSION
    SHARED_FIELDS: ClassVar[tuple[str, ...]] = tuple(
        n for n in SHARED_FIELD_NAMES if n not in ("category_id", "subcategory_id")
    )
    EXTRA_FIELDS: ClassVar[tuple[str, ...]] = ("currency_id_to", "wallet_id_to", "amount_to")
    ALIASES: ClassVar[dict[str, str]] = {
        "currency_id_from": "currency_id",
        "wallet_id_from": "wallet_id",
        "amount_from": "amount",
    }
    REQUIRED: ClassVar[tuple[str, ...]] = (
        "movement_date",
        "created_by",
        "type_id",
        "currency_id_from",
        "wallet_id_from",
        "currency_id_to",
        "wallet_id_to",
    )
    AMOUNT_FIELDS: ClassVar[tuple[str, ...]] = ("amount_from", "amount_to")

    currency_id_to: Optional[str] = None
    wallet_id_to: Optional[str] = None
    amount_to: Optional[Decimal] = None

    def _validate_extra(self, errors: dict[str, str]) -> None:
        source = self.get("currency_id_from")
        if not is_empty(source) and source == self.currency_id_to:
            errors["currency_id_to"] = "Source and destination currencies must differ"


@dataclass
class TransferForm(MovementForm):
    """Move funds between two wallets in one currency; the shared wallet is the source."""

    variant: ClassVar[FormVariant] = FormVariant.TRANSFER
    SHARED_FIELDS: ClassVar[tuple[str, ...]] = tuple(
        n for n in SHARED_FIELD_NAMES if n not in ("category_id", "subcategory_id", "exchange_rate")
    )
    EXTRA_FIELDS: ClassVar[tuple[str, ...]] = ("wallet_id_to",)
    ALIASES: ClassVar[dict[str, str]] = {"wallet_id_from": "wallet_id"}
    REQUIRED: ClassVar[tuple[str, ...]] = (
        "movement_date",
        "created_by",
        "type_id",
        "currency_id",
        "wallet_id_from",
        "wallet_id_to",
    )

    wallet_id_to: Optional[str] = None

    def _validate_extra(self, errors: dict[str, str]) -> None:
        source = self.get("wallet_id_from")
        if not is_empty(source) and source == self.wallet_id_to:
            errors["wallet_id_to"] = "Source and destination wallets must differ"


_CATEGORIZED_REQUIRED = MovementForm.REQUIRED + ("category_id",)


@dataclass
class AportesForm(MovementForm):
    """Third-party contribution."""

    variant: ClassVar[FormVariant] = FormVariant.APORTES
    EXTRA_FIELDS: ClassVar[tuple[str, ...]] = ("contact_id",)
    REQUIRED: ClassVar[tuple[str, ...]] = _CATEGORIZED_REQUIRED
    DEFAULT_DESCRIPTION: ClassVar[Optional[str]] = "Aporte"

    contact_id: Optional[str] = None


@dataclass
class AportesPropiosForm(MovementForm):
    """Contribution by an organization member."""

    variant: ClassVar[FormVariant] = FormVariant.APORTES_PROPIOS
    EXTRA_FIELDS: ClassVar[tuple[str, ...]] = ("member_id",)
    REQUIRED: ClassVar[tuple[str, ...]] = _CATEGORIZED_REQUIRED + ("member_id",)
    DEFAULT_DESCRIPTION: ClassVar[Optional[str]] = "Aporte Propio"

    member_id: Optional[str] = None


@dataclass
class RetirosPropiosForm(MovementForm):
    """Withdrawal by an organization member."""

    variant: ClassVar[FormVariant] = FormVariant.RETIROS_PROPIOS
    EXTRA_FIELDS: ClassVar[tuple[str, ...]] = ("member_id",)
    REQUIRED: ClassVar[tuple[str, ...]] = _CATEGORIZED_REQUIRED + ("member_id",)
    DEFAULT_DESCRIPTION: ClassVar[Optional[str]] = "Retiro Propio"

    member_id: Optional[str] = None


@dataclass
class MaterialesForm(MovementForm):
    variant: ClassVar[FormVariant] = FormVariant.MATERIALES
    REQUIRED: ClassVar[tuple[str, ...]] = _CATEGORIZED_REQUIRED
    RELATION_KIND: ClassVar[Optional[RelationKind]] = RelationKind.TASK
    DEFAULT_DESCRIPTION: ClassVar[Optional[str]] = "Compra de Materiales"


@dataclass
class SubcontratosForm(MovementForm):
    variant: ClassVar[FormVariant] = FormVariant.SUBCONTRATOS
    REQUIRED: ClassVar[tuple[str, ...]] = _CATEGORIZED_REQUIRED
    RELATION_KIND: ClassVar[Optional[RelationKind]] = RelationKind.SUBCONTRACT
    DEFAULT_DESCRIPTION: ClassVar[Optional[str]] = "Pago de Subcontrato"


@dataclass
class PersonalForm(MovementForm):
    variant: ClassVar[FormVariant] = FormVariant.PERSONAL
    REQUIRED: ClassVar[tuple[str, ...]] = _CATEGORIZED_REQUIRED
    RELATION_KIND: ClassVar[Optional[RelationKind]] = RelationKind.PERSONNEL
    DEFAULT_DESCRIPTION: ClassVar[Optional[str]] = "Pago de Personal"


FORM_CLASSES: dict[FormVariant, type[MovementForm]] = {
    cls.variant: cls
    for cls in (
        NormalForm,
        ConversionForm,
        TransferForm,
        AportesForm,
        AportesPropiosForm,
        RetirosPropiosForm,
        MaterialesForm,
        SubcontratosForm,
        PersonalForm,
    )
}


def new_form(variant: FormVariant) -> MovementForm:
    """Create an empty form state for ``variant``."""
    return FORM_CLASSES[variant]()


def form_field_names(variant: FormVariant) -> tuple[str, ...]:
    """Stored field names of a variant's form, aliases excluded."""
    return FORM_CLASSES[variant].field_names()


__all__ = [
    "SharedFields",
    "MovementForm",
    "FORM_CLASSES",
    "new_form",
    "form_field_names",
    "is_empty",
]
