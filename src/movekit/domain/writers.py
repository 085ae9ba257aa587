"""Writers that turn a validated form into persisted movement rows."""

import logging
import uuid
from typing import Optional

from movekit.database.base import Database, MovementRow
from movekit.domain.entities import FormVariant, MovementRecord, ViewMode
from movekit.domain.errors import (
    IncompleteGroupError,
    PersistenceError,
    RelationLinkError,
    relation_link_failed,
)
from movekit.domain.forms import MovementForm, is_empty, new_form
from movekit.domain.taxonomy import Taxonomy

logger = logging.getLogger(__name__)

# (egress, ingress) descriptions used when the user leaves the field blank
PAIR_DESCRIPTIONS = {
    FormVariant.CONVERSION: ("Conversión - Salida", "Conversión - Entrada"),
    FormVariant.TRANSFER: ("Transferencia Interna - Salida", "Transferencia Interna - Entrada"),
}

GROUP_COLUMNS = {
    FormVariant.CONVERSION: "conversion_group_id",
    FormVariant.TRANSFER: "transfer_group_id",
}

PAIR_VIEW_MODES = {
    FormVariant.CONVERSION: ViewMode.CONVERSION,
    FormVariant.TRANSFER: ViewMode.TRANSFER,
}


def _description(form: MovementForm, default: Optional[str]) -> Optional[str]:
    value = form.get("description")
    if is_empty(value):
        return default
    return value.strip()


class DualEntryWriter:
    """Persists conversions and transfers as an egress/ingress pair of rows."""

    def __init__(self, db: Database, taxonomy: Taxonomy):
        """Initialize dual entry writer.

        Args:
            db: Database instance
            taxonomy: Concept tree used to find the egress/ingress row types
        """
        self.db = db
        self.taxonomy = taxonomy

    def _pair_rows(self, form: MovementForm) -> tuple[MovementRow, MovementRow]:
        variant = form.variant
        if not variant.is_dual_entry:
            raise ValueError(f"Variant '{variant.value}' is not written as a pair")

        shared = form.shared
        egress_description, ingress_description = PAIR_DESCRIPTIONS[variant]
        common = {
            "movement_date": shared.movement_date,
            "created_by": shared.created_by,
            "project_id": shared.project_id,
            "category_id": None,
            "subcategory_id": None,
            "contact_id": None,
            "member_id": None,
            "exchange_rate": form.get("exchange_rate") if form.has_field("exchange_rate") else None,
        }
        egress = dict(
            common,
            description=_description(form, egress_description),
            type_id=self.taxonomy.egress_type_id(shared.type_id),
            currency_id=shared.currency_id,
            wallet_id=shared.wallet_id,
            amount=shared.amount,
        )
        if variant == FormVariant.CONVERSION:
            ingress_side = {
                "currency_id": form.get("currency_id_to"),
                "wallet_id": form.get("wallet_id_to"),
                "amount": form.get("amount_to"),
            }
        else:
            ingress_side = {
                "currency_id": shared.currency_id,
                "wallet_id": form.get("wallet_id_to"),
                "amount": shared.amount,
            }
        ingress = dict(
            common,
            description=_description(form, ingress_description),
            type_id=self.taxonomy.ingress_type_id(shared.type_id),
            **ingress_side,
        )
        return egress, ingress

    def create(
        self, form: MovementForm, organization_id: str
    ) -> tuple[MovementRecord, MovementRecord]:
        """Insert both rows of a new conversion or transfer.

        Args:
            form: Validated ConversionForm or TransferForm
            organization_id: Owning organization

        Returns:
            (egress, ingress) records sharing one fresh group id

        Raises:
            PersistenceError: If the pair could not be written
        """
        egress, ingress = self._pair_rows(form)
        group_id = str(uuid.uuid4())
        for row in (egress, ingress):
            row["organization_id"] = organization_id
            row["conversion_group_id"] = None
            row["transfer_group_id"] = None
            row[GROUP_COLUMNS[form.variant]] = group_id
        records = self.db.create_movement_pair(egress, ingress)
        logger.debug("Created %s group %s", form.variant.value, group_id)
        return records

    def load_group(
        self, group_id: str, variant: FormVariant
    ) -> tuple[MovementRecord, MovementRecord]:
        """Fetch a pair and tell the egress row from the ingress row.

        The row typed with the egress concept is the "from" side. When that
        does not single one out, the larger amount is "from".

        Raises:
            IncompleteGroupError: If the group does not hold exactly two rows
        """
        rows = self.db.list_group_movements(group_id, variant)
        if len(rows) != 2:
            logger.warning("%s group %s has %d rows", variant.value, group_id, len(rows))
            raise IncompleteGroupError(group_id, len(rows))

        egress_type_id = self.taxonomy.egress_type_id(None)
        typed = [row for row in rows if egress_type_id and row.type_id == egress_type_id]
        if len(typed) == 1:
            egress = typed[0]
            ingress = rows[1] if rows[0] is egress else rows[0]
            return egress, ingress
        # Rows arrive ordered by amount descending: the first one is "from"
        return rows[0], rows[1]

    def update(self, group_id: str, form: MovementForm) -> tuple[MovementRecord, MovementRecord]:
        """Overwrite both rows of an existing pair in place.

        Row ids and the group id are preserved.

        Raises:
            IncompleteGroupError: If the group does not hold exactly two rows
            PersistenceError: If the pair could not be written
        """
        egress_record, ingress_record = self.load_group(group_id, form.variant)
        egress, ingress = self._pair_rows(form)
        records = self.db.update_movement_pair(egress_record.id, egress, ingress_record.id, ingress)
        logger.debug("Updated %s group %s", form.variant.value, group_id)
        return records

    def load_for_edit(self, record: MovementRecord) -> MovementForm:
        """Build the pair form of a saved conversion or transfer row.

        Args:
            record: Either row of the pair

        Returns:
            Populated ConversionForm or TransferForm

        Raises:
            IncompleteGroupError: If the group does not hold exactly two rows
        """
        if record.conversion_group_id:
            variant = FormVariant.CONVERSION
        elif record.transfer_group_id:
            variant = FormVariant.TRANSFER
        else:
            raise ValueError(f"Movement {record.id} is not part of a pair")

        egress, ingress = self.load_group(record.group_id, variant)
        form = new_form(variant)
        pair_type = self.taxonomy.find_type_by_view_mode(PAIR_VIEW_MODES[variant])

        form.set("movement_date", egress.movement_date)
        form.set("created_by", egress.created_by)
        form.set("project_id", egress.project_id)
        form.set("type_id", pair_type.id if pair_type is not None else record.type_id)
        if egress.description not in PAIR_DESCRIPTIONS[variant]:
            form.set("description", egress.description)
        form.set("currency_id", egress.currency_id)
        form.set("wallet_id", egress.wallet_id)
        form.set("amount", egress.amount)
        form.set("wallet_id_to", ingress.wallet_id)
        if variant == FormVariant.CONVERSION:
            form.set("exchange_rate", egress.exchange_rate)
            form.set("currency_id_to", ingress.currency_id)
            form.set("amount_to", ingress.amount)
        return form


class SingleEntryWriter:
    """Persists the single-row variants and their optional relation row."""

    def __init__(self, db: Database):
        """Initialize single entry writer.

        Args:
            db: Database instance
        """
        self.db = db

    @staticmethod
    def _row(form: MovementForm) -> MovementRow:
        shared = form.shared
        return {
            "movement_date": shared.movement_date,
            "created_by": shared.created_by,
            "project_id": shared.project_id,
            "description": _description(form, form.DEFAULT_DESCRIPTION),
            "amount": shared.amount,
            "currency_id": shared.currency_id,
            "wallet_id": shared.wallet_id,
            "type_id": shared.type_id,
            "category_id": shared.category_id,
            "subcategory_id": shared.subcategory_id,
            "exchange_rate": shared.exchange_rate,
            "conversion_group_id": None,
            "transfer_group_id": None,
            "contact_id": form.get("contact_id") if form.has_field("contact_id") else None,
            "member_id": form.get("member_id") if form.has_field("member_id") else None,
        }

    def save(
        self,
        form: MovementForm,
        organization_id: str,
        movement_id: Optional[str] = None,
    ) -> MovementRecord:
        """Insert or fully overwrite one movement.

        ``form.shared.created_by`` must already hold an organization member id.

        Args:
            form: Validated single-row form
            organization_id: Owning organization
            movement_id: Existing movement to overwrite, None to insert

        Returns:
            The persisted record

        Raises:
            PersistenceError: If the movement row could not be written
            RelationLinkError: If the row was written but its relation was not
        """
        if form.variant.is_dual_entry:
            raise ValueError(f"Variant '{form.variant.value}' is written as a pair")

        row = self._row(form)
        if movement_id is None:
            row["organization_id"] = organization_id
            record = self.db.create_movement(row)
        else:
            record = self.db.update_movement(movement_id, row)
        logger.debug("Saved %s movement %s", form.variant.value, record.id)

        # Edits clear old links even when the new variant has none
        if movement_id is not None or form.RELATION_KIND is not None:
            self._link(form, record, replace=movement_id is not None)
        return record

    def _link(self, form: MovementForm, record: MovementRecord, replace: bool) -> None:
        try:
            if replace:
                self.db.delete_relations(record.id)
            if form.RELATION_KIND is not None and form.relation_target_id:
                self.db.create_relation(
                    record.id, form.RELATION_KIND, form.relation_target_id, record.amount
                )
        except PersistenceError as e:
            logger.warning("Relation for movement %s failed: %s", record.id, e)
            raise RelationLinkError(relation_link_failed(record.id, e), record) from e
