"""Directory domain service: currencies, wallets, members and picker options."""

from typing import Optional

from movekit.database.base import Database
from movekit.domain.entities import Currency, Wallet, Member, Option, RelationKind
from movekit.domain.errors import ConflictError, NotFoundError, ValidationError


class DirectoryService:
    """Service for the organization directories a movement refers to."""

    def __init__(self, db: Database):
        """Initialize directory service.

        Args:
            db: Database instance
        """
        self.db = db

    def add_currency(self, organization_id: str, code: str, name: str) -> str:
        """Add a currency to an organization.

        Args:
            organization_id: Organization ID
            code: Currency code (e.g., "USD"), stored upper-case
            name: Display name

        Returns:
            Currency ID

        Raises:
            ValidationError: If code is blank
            ConflictError: If the code already exists in the organization
        """
        code = code.strip().upper()
        if not code:
            raise ValidationError("Currency code cannot be empty")
        if self.find_currency(organization_id, code) is not None:
            raise ConflictError(f"Currency '{code}' already exists")
        return self.db.create_currency(organization_id, code, name)

    def add_wallet(self, organization_id: str, name: str) -> str:
        """Add a wallet to an organization.

        Returns:
            Wallet ID

        Raises:
            ValidationError: If name is blank
            ConflictError: If the name already exists in the organization
        """
        name = name.strip()
        if not name:
            raise ValidationError("Wallet name cannot be empty")
        if self.find_wallet(organization_id, name) is not None:
            raise ConflictError(f"Wallet '{name}' already exists")
        return self.db.create_wallet(organization_id, name)

    def add_member(self, organization_id: str, user_id: str, full_name: str) -> str:
        """Add a user to an organization.

        Returns:
            Member ID (the value stored in ``created_by``)

        Raises:
            ConflictError: If the user is already a member
        """
        if self.find_member(organization_id, user_id) is not None:
            raise ConflictError(f"User '{user_id}' is already a member")
        return self.db.create_member(organization_id, user_id, full_name)

    def add_option(self, project_id: str, kind: RelationKind, label: str) -> str:
        """Add a task, subcontract or personnel entry to a project's picker."""
        label = label.strip()
        if not label:
            raise ValidationError("Option label cannot be empty")
        return self.db.create_picker_option(project_id, kind, label)

    def get_currencies(self, organization_id: str) -> list[Currency]:
        return self.db.list_currencies(organization_id)

    def get_wallets(self, organization_id: str) -> list[Wallet]:
        return self.db.list_wallets(organization_id)

    def get_members(self, organization_id: str) -> list[Member]:
        return self.db.list_members(organization_id)

    def get_options(self, project_id: str, kind: RelationKind) -> list[Option]:
        return self.db.list_picker_options(project_id, kind)

    def find_currency(self, organization_id: str, code: str) -> Optional[Currency]:
        code = code.strip().upper()
        return next((c for c in self.get_currencies(organization_id) if c.code == code), None)

    def find_wallet(self, organization_id: str, name: str) -> Optional[Wallet]:
        name = name.strip().lower()
        return next((w for w in self.get_wallets(organization_id) if w.name.lower() == name), None)

    def find_member(self, organization_id: str, user_id: str) -> Optional[Member]:
        return next((m for m in self.get_members(organization_id) if m.user_id == user_id), None)

    def resolve_member_id(self, organization_id: str, user_id: str) -> str:
        """Map a user id to the organization member id stored in ``created_by``.

        Raises:
            NotFoundError: If the user is not a member of the organization
        """
        member = self.find_member(organization_id, user_id)
        if member is None:
            raise NotFoundError(f"User '{user_id}' is not a member of organization '{organization_id}'")
        return member.id
