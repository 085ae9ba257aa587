"""Tests for MovementService: new/edit sessions and submit."""

from datetime import date
from decimal import Decimal
from unittest.mock import patch

import pytest

from movekit.domain.entities import FormVariant, NotificationKind
from movekit.domain.errors import (
    NotFoundError,
    PersistenceError,
    SubmitInProgressError,
    ValidationError,
)
from movekit.domain.sinks import MOVEMENT_CACHE_TAGS, CacheInvalidator

ORG = "org-1"


def pick(coordinator, concepts, path):
    parts = path.split(" > ")
    ids = [concepts[" > ".join(parts[: i + 1])] for i in range(len(parts))]
    return coordinator.select_classification(*ids)


class TestNewForm:
    def test_defaults(self, new_form, directory):
        coordinator = new_form()
        form = coordinator.active_form
        assert coordinator.active_variant == FormVariant.NORMAL
        assert form.get("movement_date") == date(2024, 1, 15)
        assert form.get("created_by") == directory["member"]
        assert form.get("project_id") == "project-1"
        # First currency by code and first wallet by name
        assert form.get("currency_id") == directory["ARS"]
        assert form.get("wallet_id") == directory["Banco"]

    def test_unknown_user_leaves_creator_empty(self, movement_service, concepts, directory):
        coordinator = movement_service.new_form(ORG, user_id="stranger")
        assert coordinator.active_form.get("created_by") is None


class TestScenarios:
    def test_materiales_without_task(self, new_form, concepts, directory, movement_service, temp_db):
        """Egreso > Materiales, 1500 USD from Caja, no task: one row, no relation."""
        coordinator = new_form()
        assert pick(coordinator, concepts, "Egresos > Materiales") == FormVariant.MATERIALES
        coordinator.edit("amount", Decimal("1500"))
        coordinator.edit("currency_id", directory["USD"])
        coordinator.edit("wallet_id", directory["Caja"])

        result = movement_service.submit(coordinator)

        assert result.variant == FormVariant.MATERIALES
        assert len(result.records) == 1
        assert result.link_error is None
        rows = temp_db.list_movements(ORG)
        assert len(rows) == 1
        assert rows[0].amount == Decimal("1500")
        assert rows[0].currency_id == directory["USD"]
        assert temp_db.list_relations(rows[0].id) == []

    def test_conversion_usd_to_ars(self, new_form, concepts, directory, movement_service, temp_db):
        """Conversión from USD/Caja/100 to ARS/Banco/35000: two rows, one group."""
        coordinator = new_form()
        assert pick(coordinator, concepts, "Conversión") == FormVariant.CONVERSION
        coordinator.edit("currency_id_from", directory["USD"])
        coordinator.edit("wallet_id_from", directory["Caja"])
        coordinator.edit("amount_from", Decimal("100"))
        coordinator.edit("currency_id_to", directory["ARS"])
        coordinator.edit("wallet_id_to", directory["Banco"])
        coordinator.edit("amount_to", Decimal("35000"))

        result = movement_service.submit(coordinator)

        rows = temp_db.list_movements(ORG)
        assert len(rows) == 2
        group_ids = {r.conversion_group_id for r in rows}
        assert len(group_ids) == 1 and None not in group_ids
        assert [r.amount for r in result.records] == [Decimal("100"), Decimal("35000")]

    def test_conversion_with_equal_currencies_writes_nothing(
        self, new_form, concepts, directory, movement_service, temp_db, invalidator, notifier
    ):
        coordinator = new_form()
        pick(coordinator, concepts, "Conversión")
        coordinator.edit("currency_id_from", directory["USD"])
        coordinator.edit("currency_id_to", directory["USD"])
        coordinator.edit("wallet_id_to", directory["Caja"])
        coordinator.edit("amount_from", Decimal("100"))
        coordinator.edit("amount_to", Decimal("100"))

        with pytest.raises(ValidationError) as exc_info:
            movement_service.submit(coordinator)

        assert "currency_id_to" in exc_info.value.field_errors
        assert temp_db.list_movements(ORG) == []
        assert invalidator.tags == []
        assert notifier.notifications == []
        assert not coordinator.submitting

    def test_transfer_with_equal_wallets_rejected(self, new_form, concepts, directory, movement_service, temp_db):
        coordinator = new_form()
        assert pick(coordinator, concepts, "Transferencias Internas") == FormVariant.TRANSFER
        coordinator.edit("amount", Decimal("50"))
        coordinator.edit("wallet_id_to", directory["Banco"])

        with pytest.raises(ValidationError) as exc_info:
            movement_service.submit(coordinator)
        assert exc_info.value.field_errors == {
            "wallet_id_to": "Source and destination wallets must differ"
        }
        assert temp_db.list_movements(ORG) == []

    def test_edit_conversion_to_amount_only(self, new_form, concepts, directory, movement_service, temp_db):
        coordinator = new_form()
        pick(coordinator, concepts, "Conversión")
        coordinator.edit("currency_id_from", directory["USD"])
        coordinator.edit("wallet_id_from", directory["Caja"])
        coordinator.edit("amount_from", Decimal("100"))
        coordinator.edit("currency_id_to", directory["ARS"])
        coordinator.edit("wallet_id_to", directory["Banco"])
        coordinator.edit("amount_to", Decimal("35000"))
        egress, ingress = movement_service.submit(coordinator).records

        editor = movement_service.open_for_edit(ingress.id)
        assert editor.active_variant == FormVariant.CONVERSION
        editor.edit("amount_to", Decimal("36500"))
        updated = movement_service.submit(editor)

        assert [r.id for r in updated.records] == [egress.id, ingress.id]
        stored_egress = temp_db.get_movement(egress.id)
        stored_ingress = temp_db.get_movement(ingress.id)
        assert stored_egress.amount == Decimal("100")
        assert stored_ingress.amount == Decimal("36500")
        assert stored_egress.conversion_group_id == egress.conversion_group_id
        assert stored_ingress.conversion_group_id == egress.conversion_group_id
        assert len(temp_db.list_movements(ORG)) == 2

    def test_edit_transfer(self, new_form, concepts, directory, movement_service, temp_db):
        coordinator = new_form()
        pick(coordinator, concepts, "Transferencias Internas")
        coordinator.edit("amount", Decimal("50"))
        coordinator.edit("wallet_id_from", directory["Caja"])
        coordinator.edit("wallet_id_to", directory["Banco"])
        egress, ingress = movement_service.submit(coordinator).records

        editor = movement_service.open_for_edit(egress.id)
        editor.edit("amount", Decimal("75"))
        movement_service.submit(editor)

        assert temp_db.get_movement(egress.id).amount == Decimal("75")
        assert temp_db.get_movement(ingress.id).amount == Decimal("75")


class TestSubmitSideEffects:
    def _materiales(self, new_form, concepts):
        coordinator = new_form()
        pick(coordinator, concepts, "Egresos > Materiales")
        coordinator.edit("amount", Decimal("10"))
        return coordinator

    def test_success_invalidates_every_tag_and_notifies(
        self, new_form, concepts, movement_service, invalidator, notifier
    ):
        movement_service.submit(self._materiales(new_form, concepts))
        assert invalidator.tags == list(MOVEMENT_CACHE_TAGS)
        assert [n[0] for n in notifier.notifications] == [NotificationKind.SUCCESS]

    def test_failing_cache_sink_does_not_fail_submit(self, temp_db, new_form, concepts, notifier):
        from movekit.domain.movement import MovementService

        class BrokenInvalidator(CacheInvalidator):
            def invalidate(self, tag):
                raise RuntimeError("cache down")

        service = MovementService(temp_db, invalidator=BrokenInvalidator(), notifier=notifier)
        result = service.submit(self._materiales(new_form, concepts))
        assert temp_db.get_movement(result.record.id) is not None

    def test_persistence_error_notifies_and_keeps_form(
        self, new_form, concepts, movement_service, temp_db, invalidator, notifier
    ):
        coordinator = self._materiales(new_form, concepts)
        with patch.object(temp_db, "create_movement", side_effect=PersistenceError("disk I/O error")):
            with pytest.raises(PersistenceError):
                movement_service.submit(coordinator)

        assert notifier.notifications == [
            (NotificationKind.ERROR, "Movement not saved", "disk I/O error")
        ]
        assert invalidator.tags == []
        assert not coordinator.submitting
        assert coordinator.active_form.get("amount") == Decimal("10")
        # Retry succeeds with the untouched form
        assert movement_service.submit(coordinator).record.amount == Decimal("10")

    def test_relation_failure_is_reported_softly(
        self, new_form, concepts, movement_service, temp_db, invalidator, notifier
    ):
        coordinator = self._materiales(new_form, concepts)
        coordinator.select_relation("task-1")
        with patch.object(temp_db, "create_relation", side_effect=PersistenceError("fk failed")):
            result = movement_service.submit(coordinator)

        assert result.link_error is not None
        assert temp_db.get_movement(result.record.id) is not None
        assert invalidator.tags == list(MOVEMENT_CACHE_TAGS)
        kinds = [n[0] for n in notifier.notifications]
        assert kinds == [NotificationKind.SUCCESS, NotificationKind.ERROR]

    def test_submit_in_flight_is_rejected(self, new_form, concepts, movement_service, temp_db):
        coordinator = self._materiales(new_form, concepts)
        with coordinator.submission():
            with pytest.raises(SubmitInProgressError):
                movement_service.submit(coordinator)
        assert temp_db.list_movements(ORG) == []

    def test_user_id_creator_is_mapped_to_member(self, new_form, concepts, directory, movement_service):
        coordinator = self._materiales(new_form, concepts)
        coordinator.edit("created_by", "user-2")
        result = movement_service.submit(coordinator)
        assert result.record.created_by == directory["partner"]
        # The form keeps what the user entered
        assert coordinator.active_form.get("created_by") == "user-2"

    def test_unknown_creator_is_rejected(self, new_form, concepts, movement_service, temp_db, notifier):
        coordinator = self._materiales(new_form, concepts)
        coordinator.edit("created_by", "ghost")

        with pytest.raises(ValidationError) as exc_info:
            movement_service.submit(coordinator)

        assert "created_by" in exc_info.value.field_errors
        assert temp_db.list_movements(ORG) == []
        assert notifier.notifications == []
        assert not coordinator.submitting


class TestEditing:
    def test_single_row_edit_keeps_id_and_variant(self, new_form, concepts, directory, movement_service, temp_db):
        coordinator = new_form()
        pick(coordinator, concepts, "Aportes > Aportes Propios")
        coordinator.edit("amount", Decimal("5000"))
        coordinator.edit("member_id", directory["partner"])
        record = movement_service.submit(coordinator).record

        editor = movement_service.open_for_edit(record.id)
        assert editor.active_variant == FormVariant.APORTES_PROPIOS
        assert editor.active_form.get("member_id") == directory["partner"]
        editor.edit("description", "Capital inicial")
        updated = movement_service.submit(editor).record

        assert updated.id == record.id
        assert updated.description == "Capital inicial"
        assert len(temp_db.list_movements(ORG)) == 1

    def test_edit_reloads_relation(self, new_form, concepts, movement_service):
        coordinator = new_form()
        pick(coordinator, concepts, "Egresos > Mano de Obra > Subcontratos")
        coordinator.edit("amount", Decimal("800"))
        coordinator.select_relation("subcontract-9")
        record = movement_service.submit(coordinator).record

        editor = movement_service.open_for_edit(record.id)
        assert editor.active_variant == FormVariant.SUBCONTRATOS
        assert editor.active_form.relation_target_id == "subcontract-9"

    def test_pair_cannot_become_single_row(self, new_form, concepts, directory, movement_service):
        coordinator = new_form()
        pick(coordinator, concepts, "Transferencias Internas")
        coordinator.edit("amount", Decimal("50"))
        coordinator.edit("wallet_id_to", directory["Caja"])
        egress, _ingress = movement_service.submit(coordinator).records

        editor = movement_service.open_for_edit(egress.id)
        pick(editor, concepts, "Egresos > Materiales")
        with pytest.raises(ValidationError):
            movement_service.submit(editor)

    def _materiales_with_task(self, new_form, concepts, movement_service):
        coordinator = new_form()
        pick(coordinator, concepts, "Egresos > Materiales")
        coordinator.edit("amount", Decimal("1500"))
        coordinator.select_relation("task-1")
        return movement_service.submit(coordinator).record

    def test_edit_into_variant_without_links_drops_relation(
        self, new_form, concepts, movement_service, temp_db
    ):
        record = self._materiales_with_task(new_form, concepts, movement_service)
        assert len(temp_db.list_relations(record.id)) == 1

        editor = movement_service.open_for_edit(record.id)
        assert pick(editor, concepts, "Egresos > Gastos Generales") == FormVariant.NORMAL
        result = movement_service.submit(editor)

        assert result.record.id == record.id
        assert temp_db.list_relations(record.id) == []

    def test_edit_type_drops_category_of_old_type(self, new_form, concepts, movement_service):
        record = self._materiales_with_task(new_form, concepts, movement_service)

        editor = movement_service.open_for_edit(record.id)
        assert editor.edit("type_id", concepts["Ingresos"]) == FormVariant.NORMAL
        updated = movement_service.submit(editor).record

        assert updated.type_id == concepts["Ingresos"]
        assert updated.category_id is None
        assert updated.subcategory_id is None

    def test_missing_movement(self, movement_service):
        with pytest.raises(NotFoundError):
            movement_service.open_for_edit("nope")


def test_reconcile_reports_orphaned_rows(movement_service, temp_db, concepts, directory):
    row = {
        "organization_id": ORG,
        "movement_date": date(2024, 1, 15),
        "created_by": directory["member"],
        "amount": Decimal("100"),
        "currency_id": directory["USD"],
        "wallet_id": directory["Caja"],
        "type_id": concepts["Egresos"],
        "transfer_group_id": "half-a-transfer",
    }
    orphan = temp_db.create_movement(row)

    groups = movement_service.reconcile_groups(ORG)
    assert len(groups) == 1
    assert groups[0].group_id == "half-a-transfer"
    assert groups[0].kind == FormVariant.TRANSFER
    assert groups[0].movement_ids == (orphan.id,)
    assert movement_service.reconcile_groups("other-org") == []
