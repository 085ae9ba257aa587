"""Reopen a saved movement in the form shape it was entered with."""

import logging

from movekit.database.base import Database
from movekit.domain.coordinator import MultiFormCoordinator, RecordLoaded
from movekit.domain.entities import MovementRecord
from movekit.domain.forms import MovementForm, new_form
from movekit.domain.taxonomy import ClassificationPath, Taxonomy
from movekit.domain.variants import derive_record_variant
from movekit.domain.writers import DualEntryWriter

logger = logging.getLogger(__name__)


class EditModeReconstructor:
    """Builds an edit-mode coordinator from a persisted movement."""

    def __init__(self, db: Database, taxonomy: Taxonomy):
        self.db = db
        self.taxonomy = taxonomy
        self.dual_writer = DualEntryWriter(db, taxonomy)

    def _single_form(self, record: MovementRecord, form: MovementForm) -> MovementForm:
        for name in form.field_names():
            form.set(name, getattr(record, name))
        return form

    def reconstruct(self, record: MovementRecord) -> MultiFormCoordinator:
        """Derive the variant of ``record`` and load its exact values.

        Args:
            record: Movement to edit

        Returns:
            Coordinator in edit mode with the derived variant active

        Raises:
            IncompleteGroupError: If the record belongs to a broken pair
        """
        variant = derive_record_variant(record, self.taxonomy)
        if variant.is_dual_entry:
            form = self.dual_writer.load_for_edit(record)
        else:
            form = self._single_form(record, new_form(variant))

        relation_target_id = None
        if form.RELATION_KIND is not None:
            relations = self.db.list_relations(record.id)
            if relations:
                relation_target_id = relations[0].target_id

        coordinator = MultiFormCoordinator(self.taxonomy, record.organization_id)
        coordinator.dispatch(
            RecordLoaded(
                record=record,
                variant=variant,
                form=form,
                classification=ClassificationPath(
                    record.type_id, record.category_id, record.subcategory_id
                ),
                relation_target_id=relation_target_id,
            )
        )
        logger.debug("Reconstructed movement %s as %s", record.id, variant.value)
        return coordinator
