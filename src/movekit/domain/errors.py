"""Shared domain error messages and error types."""

from typing import Optional


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic.

    ``field_errors`` maps form field names to messages so they can be shown
    next to the offending field.
    """

    def __init__(self, message: str, field_errors: Optional[dict[str, str]] = None):
        super().__init__(message)
        self.field_errors = dict(field_errors or {})


class NotFoundError(DomainError):
    """Requested domain entity or path does not exist."""


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations."""


class SubmitInProgressError(DomainError):
    """A submit is already pending for this form."""


class PersistenceError(DomainError):
    """The persistence gateway rejected a write."""


class IncompleteGroupError(DomainError):
    """A conversion or transfer group does not hold exactly two rows."""

    def __init__(self, group_id: str, row_count: int):
        super().__init__(incomplete_group(group_id, row_count))
        self.group_id = group_id
        self.row_count = row_count


class RelationLinkError(DomainError):
    """The movement was saved but its relation row could not be written."""

    def __init__(self, message: str, record):
        super().__init__(message)
        self.record = record


def movement_not_found(movement_id: str) -> str:
    """Return message for missing movement."""
    return f"Movement {movement_id} not found"


def concept_not_found(concept_id: str) -> str:
    """Return message for missing concept by ID."""
    return f"Concept {concept_id} not found"


def concept_path_not_found(path: str) -> str:
    """Return message for missing concept by path."""
    return f"Concept '{path}' not found"


def incomplete_group(group_id: str, row_count: int) -> str:
    """Return message for a pair group with the wrong number of rows."""
    return f"Group {group_id} has {row_count} movement{'s' if row_count != 1 else ''}, expected 2"


def relation_link_failed(movement_id: str, error: Exception) -> str:
    """Return message when a relation row could not be written."""
    return f"Movement {movement_id} was saved but its link could not be stored: {error}"


def format_field_errors(field_errors: dict[str, str]) -> str:
    """Render field errors as a single line."""
    return "; ".join(f"{field}: {message}" for field, message in sorted(field_errors.items()))
