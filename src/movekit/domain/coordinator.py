"""Multi-form coordinator.

Holds one form state per FormVariant and routes every change through a
single reducer, ``MultiFormCoordinator.dispatch``. Switching the
classification may switch the active variant; shared field values follow
the user into the newly active form so that no entered data is lost.
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Iterator, Optional, Union

from movekit.domain.entities import FormVariant, MovementRecord
from movekit.domain.errors import SubmitInProgressError, ValidationError, format_field_errors
from movekit.domain.forms import (
    CLASSIFICATION_FIELDS,
    SHARED_FIELD_NAMES,
    MovementForm,
    is_empty,
    new_form,
)
from movekit.domain.taxonomy import ClassificationPath, Taxonomy
from movekit.domain.variants import resolve_classification

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClassificationChanged:
    """The user picked a new (type, category, subcategory) selection."""

    type_id: Optional[str]
    category_id: Optional[str] = None
    subcategory_id: Optional[str] = None


@dataclass(frozen=True)
class FieldEdited:
    """The user changed one field. ``variant`` defaults to the active one."""

    name: str
    value: Any
    variant: Optional[FormVariant] = None


@dataclass(frozen=True)
class RelationSelected:
    """The user picked (or cleared) the task/subcontract/personnel link."""

    target_id: Optional[str]


@dataclass(frozen=True)
class DefaultsApplied:
    """Default values for a new movement (today, current member, first wallet...)."""

    values: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class RecordLoaded:
    """Exact persisted values of a movement opened for editing."""

    record: MovementRecord
    variant: FormVariant
    form: MovementForm
    classification: ClassificationPath
    relation_target_id: Optional[str] = None


Action = Union[ClassificationChanged, FieldEdited, RelationSelected, DefaultsApplied, RecordLoaded]


class MultiFormCoordinator:
    """State machine over the nine form variants of one movement form."""

    def __init__(self, taxonomy: Taxonomy, organization_id: str):
        self.taxonomy = taxonomy
        self.organization_id = organization_id
        self.forms: dict[FormVariant, MovementForm] = {v: new_form(v) for v in FormVariant}
        self.active_variant = FormVariant.NORMAL
        # Form whose values are propagated on the next variant switch
        self.focus_variant = FormVariant.NORMAL
        self.editing: Optional[MovementRecord] = None
        self.submitting = False
        self._revision = 0

    @property
    def active_form(self) -> MovementForm:
        return self.forms[self.active_variant]

    @property
    def is_editing(self) -> bool:
        return self.editing is not None

    @property
    def classification(self) -> ClassificationPath:
        form = self.active_form
        values = [
            form.get(name) if form.has_field(name) else None for name in CLASSIFICATION_FIELDS
        ]
        return ClassificationPath(*values)

    def _next_revision(self) -> int:
        self._revision += 1
        return self._revision

    def dispatch(self, action: Action) -> FormVariant:
        """Apply one action.

        Args:
            action: One of the coordinator actions

        Returns:
            The active variant after the action

        Raises:
            ValidationError: If the action targets a field the form does not have
            TypeError: If the action is not a coordinator action
        """
        if isinstance(action, ClassificationChanged):
            self._classification_changed(action)
        elif isinstance(action, FieldEdited):
            self._field_edited(action)
        elif isinstance(action, RelationSelected):
            self._relation_selected(action)
        elif isinstance(action, DefaultsApplied):
            self._defaults_applied(action)
        elif isinstance(action, RecordLoaded):
            self._record_loaded(action)
        else:
            raise TypeError(f"Unknown coordinator action: {action!r}")
        return self.active_variant

    # Convenience wrappers used by the service layer and the CLI
    def select_classification(
        self,
        type_id: Optional[str],
        category_id: Optional[str] = None,
        subcategory_id: Optional[str] = None,
    ) -> FormVariant:
        return self.dispatch(ClassificationChanged(type_id, category_id, subcategory_id))

    def edit(self, name: str, value: Any) -> FormVariant:
        return self.dispatch(FieldEdited(name, value))

    def select_relation(self, target_id: Optional[str]) -> FormVariant:
        return self.dispatch(RelationSelected(target_id))

    def apply_defaults(self, **values: Any) -> FormVariant:
        return self.dispatch(DefaultsApplied(values))

    def _normalize_path(self, action: ClassificationChanged) -> ClassificationPath:
        type_id, category_id, subcategory_id = (
            action.type_id,
            action.category_id,
            action.subcategory_id,
        )
        category = self.taxonomy.get(category_id)
        if category is not None and category.parent_id != type_id:
            category_id = None
            subcategory_id = None
        subcategory = self.taxonomy.get(subcategory_id)
        if subcategory is not None and subcategory.parent_id != category_id:
            subcategory_id = None
        return ClassificationPath(type_id, category_id, subcategory_id)

    def _write_classification(self, form: MovementForm, path: ClassificationPath, revision: int):
        for name in CLASSIFICATION_FIELDS:
            if form.has_field(name):
                form.set(name, getattr(path, name))
                form.edits[name] = revision

    def _classification_changed(self, action: ClassificationChanged) -> None:
        path = self._normalize_path(action)
        revision = self._next_revision()
        source = self.forms[self.focus_variant]
        self._write_classification(source, path, revision)

        variant = resolve_classification(
            self.taxonomy, path.type_id, path.category_id, path.subcategory_id
        )
        if variant == self.active_variant:
            self._write_classification(self.active_form, path, revision)
            return

        leaving = self.forms[self.active_variant]
        if leaving.RELATION_KIND is not None and leaving.relation_target_id is not None:
            logger.debug(
                "Dropping unsaved %s selection of %s form",
                leaving.RELATION_KIND.value,
                self.active_variant.value,
            )
            leaving.relation_target_id = None

        target = self.forms[variant]
        self._propagate(source, target)
        self._write_classification(target, path, revision)
        logger.debug("Variant switched %s -> %s", self.active_variant.value, variant.value)
        self.active_variant = variant
        self.focus_variant = variant

    def _propagate(self, source: MovementForm, target: MovementForm) -> None:
        for name in SHARED_FIELD_NAMES:
            if name in CLASSIFICATION_FIELDS:
                continue
            if not (source.has_field(name) and target.has_field(name)):
                continue
            value = source.get(name)
            if is_empty(value):
                continue
            source_revision = source.edits.get(name, 0)
            # A newer edit in the target form wins over the propagated value
            if target.edits.get(name, 0) > source_revision:
                continue
            target.set(name, value)
            if source_revision:
                target.edits[name] = source_revision

    def _field_edited(self, action: FieldEdited) -> None:
        variant = action.variant or self.active_variant
        form = self.forms[variant]
        name = form.canonical(action.name)
        if name in CLASSIFICATION_FIELDS:
            current = self.classification
            self._classification_changed(
                ClassificationChanged(
                    **{
                        "type_id": current.type_id,
                        "category_id": current.category_id,
                        "subcategory_id": current.subcategory_id,
                        name: action.value,
                    }
                )
            )
            return
        if not form.has_field(name):
            raise ValidationError(
                f"{variant.value} movements have no field '{action.name}'",
                {action.name: "Not a field of this movement type"},
            )
        form.set(name, action.value)
        form.edits[name] = self._next_revision()
        self.focus_variant = variant

    def _relation_selected(self, action: RelationSelected) -> None:
        form = self.active_form
        if form.RELATION_KIND is None:
            raise ValidationError(
                f"{self.active_variant.value} movements cannot be linked",
                {"relation_target_id": "Not available for this movement type"},
            )
        form.relation_target_id = action.target_id

    def _defaults_applied(self, action: DefaultsApplied) -> None:
        if self.is_editing:
            return
        for form in self.forms.values():
            for name, value in action.values.items():
                if form.has_field(name) and form.is_empty(name):
                    form.set(name, value)

    def _record_loaded(self, action: RecordLoaded) -> None:
        self.editing = action.record
        form = action.form.copy()
        form.edits = {}
        if form.RELATION_KIND is not None:
            form.relation_target_id = action.relation_target_id
        self.forms[action.variant] = form
        # Keep the generic selector consistent with the stored path
        normal = self.forms[FormVariant.NORMAL]
        for name in CLASSIFICATION_FIELDS:
            normal.set(name, getattr(action.classification, name))
        self.active_variant = action.variant
        self.focus_variant = action.variant
        logger.debug("Loaded movement %s as %s", action.record.id, action.variant.value)

    def validate_active(self) -> MovementForm:
        """Validate the active form.

        Returns:
            The active form

        Raises:
            ValidationError: With per-field messages if the form is invalid
        """
        errors = self.active_form.validate()
        if errors:
            raise ValidationError(format_field_errors(errors), errors)
        return self.active_form

    @contextmanager
    def submission(self) -> Iterator[MovementForm]:
        """Hold the in-flight guard for the duration of one submit.

        Raises:
            SubmitInProgressError: If a submit is already pending
        """
        if self.submitting:
            raise SubmitInProgressError("A submit is already in progress for this movement")
        self.submitting = True
        try:
            yield self.active_form
        finally:
            self.submitting = False
