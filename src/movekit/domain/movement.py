"""Movement domain service: opening, submitting and auditing movement forms."""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional

from movekit.database.base import Database
from movekit.domain.coordinator import MultiFormCoordinator
from movekit.domain.directory import DirectoryService
from movekit.domain.entities import (
    FormVariant,
    MovementRecord,
    NotificationKind,
    OrphanedGroup,
)
from movekit.domain.errors import (
    IncompleteGroupError,
    NotFoundError,
    PersistenceError,
    RelationLinkError,
    ValidationError,
    movement_not_found,
)
from movekit.domain.forms import MovementForm
from movekit.domain.reconstruct import EditModeReconstructor
from movekit.domain.sinks import (
    CacheInvalidator,
    LoggingInvalidator,
    LoggingNotifier,
    Notifier,
    invalidate_movement_caches,
)
from movekit.domain.taxonomy import TaxonomyService
from movekit.domain.writers import DualEntryWriter, SingleEntryWriter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SubmitResult:
    """Outcome of a successful submit."""

    variant: FormVariant
    records: tuple[MovementRecord, ...]
    link_error: Optional[RelationLinkError] = None

    @property
    def record(self) -> MovementRecord:
        """The single row, or the egress row of a pair."""
        return self.records[0]


def _pair_variant(record: MovementRecord) -> Optional[FormVariant]:
    if record.conversion_group_id:
        return FormVariant.CONVERSION
    if record.transfer_group_id:
        return FormVariant.TRANSFER
    return None


class MovementService:
    """Service for entering and editing movements."""

    def __init__(
        self,
        db: Database,
        invalidator: Optional[CacheInvalidator] = None,
        notifier: Optional[Notifier] = None,
    ):
        """Initialize movement service.

        Args:
            db: Database instance
            invalidator: Cache sink told about every successful write
            notifier: Sink for user-facing success and error messages
        """
        self.db = db
        self.taxonomy_service = TaxonomyService(db)
        self.directory = DirectoryService(db)
        self.invalidator = invalidator or LoggingInvalidator()
        self.notifier = notifier or LoggingNotifier()

    def new_form(
        self,
        organization_id: str,
        user_id: Optional[str] = None,
        project_id: Optional[str] = None,
        today: Optional[date] = None,
    ) -> MultiFormCoordinator:
        """Open a form for a new movement, seeded with defaults.

        Defaults are today's date, the acting member, the project and the
        organization's first currency and wallet.

        Args:
            organization_id: Organization the movement belongs to
            user_id: Acting user; seeds ``created_by`` when they are a member
            project_id: Optional project the movement is booked to
            today: Date to seed instead of the current date

        Returns:
            Coordinator with the normal variant active
        """
        taxonomy = self.taxonomy_service.load_taxonomy(organization_id)
        coordinator = MultiFormCoordinator(taxonomy, organization_id)

        defaults = {"movement_date": today or date.today(), "project_id": project_id}
        if user_id is not None:
            member = self.directory.find_member(organization_id, user_id)
            if member is not None:
                defaults["created_by"] = member.id
        currencies = self.directory.get_currencies(organization_id)
        if currencies:
            defaults["currency_id"] = currencies[0].id
        wallets = self.directory.get_wallets(organization_id)
        if wallets:
            defaults["wallet_id"] = wallets[0].id

        coordinator.apply_defaults(**{k: v for k, v in defaults.items() if v is not None})
        return coordinator

    def get_movement(self, movement_id: str) -> Optional[MovementRecord]:
        return self.db.get_movement(movement_id)

    def list_movements(
        self, organization_id: str, project_id: Optional[str] = None
    ) -> list[MovementRecord]:
        return self.db.list_movements(organization_id, project_id)

    def open_for_edit(self, movement_id: str) -> MultiFormCoordinator:
        """Open a saved movement in the variant it was entered with.

        Raises:
            NotFoundError: If the movement doesn't exist
            IncompleteGroupError: If the movement belongs to a broken pair
        """
        record = self.db.get_movement(movement_id)
        if record is None:
            raise NotFoundError(movement_not_found(movement_id))
        taxonomy = self.taxonomy_service.load_taxonomy(record.organization_id)
        return EditModeReconstructor(self.db, taxonomy).reconstruct(record)

    def _resolve_creator(self, form: MovementForm, organization_id: str) -> MovementForm:
        """Return the form to write, with ``created_by`` holding a member id.

        A creator given as a user id is mapped on a copy; the caller's form
        is never changed.

        Raises:
            ValidationError: If the creator is not a member of the organization
        """
        creator = form.shared.created_by
        members = self.directory.get_members(organization_id)
        if any(m.id == creator for m in members):
            return form
        member = next((m for m in members if m.user_id == creator), None)
        if member is None:
            raise ValidationError(
                f"'{creator}' is not a member of organization '{organization_id}'",
                {"created_by": "Creator is not a member of this organization"},
            )
        resolved = form.copy()
        resolved.shared.created_by = member.id
        return resolved

    def _check_edit_shape(self, coordinator: MultiFormCoordinator) -> None:
        editing = coordinator.editing
        if editing is None:
            return
        stored = _pair_variant(editing)
        variant = coordinator.active_variant
        if (stored is not None or variant.is_dual_entry) and stored != variant:
            raise ValidationError(
                f"Movement {editing.id} cannot be changed into a {variant.value} movement",
                {"type_id": "Pick a type of the same kind as the saved movement"},
            )

    def _write(
        self, coordinator: MultiFormCoordinator, form: MovementForm
    ) -> tuple[MovementRecord, ...]:
        organization_id = coordinator.organization_id
        editing = coordinator.editing
        if form.variant.is_dual_entry:
            writer = DualEntryWriter(self.db, coordinator.taxonomy)
            if editing is not None:
                return writer.update(editing.group_id, form)
            return writer.create(form, organization_id)

        movement_id = editing.id if editing is not None else None
        record = SingleEntryWriter(self.db).save(form, organization_id, movement_id)
        return (record,)

    def submit(self, coordinator: MultiFormCoordinator) -> SubmitResult:
        """Validate and persist the active variant of a form.

        On success every movement cache tag is invalidated and a success
        notification is sent. On a write failure the form is left as it was.

        Args:
            coordinator: Form to submit

        Returns:
            SubmitResult with the persisted rows; ``link_error`` is set when
            the row was saved but its task/subcontract/personnel link was not

        Raises:
            SubmitInProgressError: If this form is already being submitted
            ValidationError: If the active form is invalid
            PersistenceError: If the write failed
            IncompleteGroupError: If the edited pair no longer has two rows
        """
        with coordinator.submission() as form:
            coordinator.validate_active()
            self._check_edit_shape(coordinator)
            form = self._resolve_creator(form, coordinator.organization_id)

            link_error = None
            try:
                records = self._write(coordinator, form)
            except RelationLinkError as e:
                link_error = e
                records = (e.record,)
            except (PersistenceError, IncompleteGroupError) as e:
                logger.error("Submit of %s movement failed: %s", form.variant.value, e)
                self.notifier.notify(NotificationKind.ERROR, "Movement not saved", str(e))
                raise

        invalidate_movement_caches(self.invalidator)
        action = "updated" if coordinator.is_editing else "created"
        logger.info(
            "Movement %s %s (%s)", ", ".join(r.id for r in records), action, form.variant.value
        )
        self.notifier.notify(
            NotificationKind.SUCCESS,
            "Movement saved",
            f"{form.variant.value.replace('_', ' ').capitalize()} movement {action}",
        )
        if link_error is not None:
            self.notifier.notify(NotificationKind.ERROR, "Link not saved", str(link_error))
        return SubmitResult(variant=form.variant, records=records, link_error=link_error)

    def reconcile_groups(self, organization_id: Optional[str] = None) -> list[OrphanedGroup]:
        """Report conversion/transfer groups that do not hold exactly two rows.

        Nothing is repaired; broken groups are logged and returned.
        """
        orphaned = self.db.find_orphaned_groups(organization_id)
        for group in orphaned:
            logger.warning(
                "%s group %s has %d rows: %s",
                group.kind.value,
                group.group_id,
                group.row_count,
                ", ".join(group.movement_ids),
            )
        return orphaned
