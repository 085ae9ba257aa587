"""Abstract database interface."""

from abc import ABC, abstractmethod
from typing import Optional, Any
from decimal import Decimal

# Import entities directly to avoid circular import through domain/__init__.py
from movekit.domain.entities import (
    TaxonomyNode,
    MovementRecord,
    RelationRecord,
    RelationKind,
    FormVariant,
    Currency,
    Wallet,
    Member,
    Option,
    OrphanedGroup,
)

# A movement payload: column name -> value, see mappers.MOVEMENT_COLUMNS
MovementRow = dict[str, Any]


class Database(ABC):
    """Abstract persistence gateway for movekit.

    Write failures are reported as ``PersistenceError``; lookups of missing
    rows by id raise ``NotFoundError`` on writes and return None on reads.
    """

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    # Concept (taxonomy) operations
    @abstractmethod
    def create_concept(
        self,
        name: str,
        parent_id: Optional[str] = None,
        view_mode: Optional[str] = None,
        organization_id: Optional[str] = None,
        variant_override: Optional[FormVariant] = None,
        concept_id: Optional[str] = None,
    ) -> str:
        """Create a taxonomy concept. Returns concept ID."""
        pass

    @abstractmethod
    def get_concept(self, concept_id: str) -> Optional[TaxonomyNode]:
        """Get concept by ID."""
        pass

    @abstractmethod
    def list_concepts(self, organization_id: Optional[str] = None) -> list[TaxonomyNode]:
        """List system concepts plus the concepts scoped to ``organization_id``."""
        pass

    @abstractmethod
    def get_concept_tree(self, organization_id: Optional[str] = None) -> list[dict[str, Any]]:
        """Get full concept tree with hierarchy.

        Returns a list of dictionaries with concept data and nested 'children' lists.
        """
        pass

    # Movement operations
    @abstractmethod
    def create_movement(self, row: MovementRow) -> MovementRecord:
        """Insert one movement row."""
        pass

    @abstractmethod
    def create_movement_pair(
        self, egress: MovementRow, ingress: MovementRow
    ) -> tuple[MovementRecord, MovementRecord]:
        """Insert the two rows of a conversion or transfer in one transaction."""
        pass

    @abstractmethod
    def update_movement(self, movement_id: str, row: MovementRow) -> MovementRecord:
        """Overwrite the given columns of one movement."""
        pass

    @abstractmethod
    def update_movement_pair(
        self,
        egress_id: str,
        egress: MovementRow,
        ingress_id: str,
        ingress: MovementRow,
    ) -> tuple[MovementRecord, MovementRecord]:
        """Overwrite both rows of a pair in one transaction."""
        pass

    @abstractmethod
    def get_movement(self, movement_id: str) -> Optional[MovementRecord]:
        """Get movement by ID."""
        pass

    @abstractmethod
    def list_movements(
        self, organization_id: str, project_id: Optional[str] = None
    ) -> list[MovementRecord]:
        """List movements of an organization, newest first."""
        pass

    @abstractmethod
    def list_group_movements(self, group_id: str, kind: FormVariant) -> list[MovementRecord]:
        """List the rows sharing a conversion or transfer group id.

        Rows are ordered by amount descending, then by creation order.
        """
        pass

    @abstractmethod
    def find_orphaned_groups(self, organization_id: Optional[str] = None) -> list[OrphanedGroup]:
        """Find conversion/transfer groups that do not hold exactly two rows."""
        pass

    # Relation operations
    @abstractmethod
    def create_relation(
        self,
        movement_id: str,
        relation_kind: RelationKind,
        target_id: str,
        amount: Optional[Decimal] = None,
    ) -> str:
        """Create a relation row. Returns relation ID."""
        pass

    @abstractmethod
    def delete_relations(self, movement_id: str) -> int:
        """Delete every relation row of a movement. Returns the number deleted."""
        pass

    @abstractmethod
    def list_relations(self, movement_id: str) -> list[RelationRecord]:
        """List relation rows of a movement."""
        pass

    # Directory operations
    @abstractmethod
    def create_currency(self, organization_id: str, code: str, name: str) -> str:
        """Create a currency. Returns currency ID."""
        pass

    @abstractmethod
    def list_currencies(self, organization_id: str) -> list[Currency]:
        """List currencies of an organization."""
        pass

    @abstractmethod
    def create_wallet(self, organization_id: str, name: str) -> str:
        """Create a wallet. Returns wallet ID."""
        pass

    @abstractmethod
    def list_wallets(self, organization_id: str) -> list[Wallet]:
        """List wallets of an organization."""
        pass

    @abstractmethod
    def create_member(self, organization_id: str, user_id: str, full_name: str) -> str:
        """Create an organization member. Returns member ID."""
        pass

    @abstractmethod
    def list_members(self, organization_id: str) -> list[Member]:
        """List members of an organization."""
        pass

    @abstractmethod
    def create_picker_option(self, project_id: str, kind: RelationKind, label: str) -> str:
        """Create a task/subcontract/personnel option. Returns option ID."""
        pass

    @abstractmethod
    def list_picker_options(self, project_id: str, kind: RelationKind) -> list[Option]:
        """List picker options of a project, sorted by label."""
        pass
