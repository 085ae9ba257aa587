"""Taxonomy (movement concept tree) model and domain service."""

import logging
from dataclasses import dataclass
from typing import Optional, Iterable

from movekit.database.base import Database
from movekit.domain.entities import TaxonomyNode, FormVariant, ViewMode
from movekit.domain.errors import NotFoundError, ValidationError, concept_path_not_found

logger = logging.getLogger(__name__)

PATH_SEPARATOR = " > "

# Generic sub-concepts used as row types of the two sides of a pair
EGRESS_TYPE_MARKER = "egreso"
INGRESS_TYPE_MARKER = "ingreso"


@dataclass(frozen=True)
class ClassificationPath:
    """The (type, category, subcategory) selection of a movement."""

    type_id: Optional[str] = None
    category_id: Optional[str] = None
    subcategory_id: Optional[str] = None


class Taxonomy:
    """Read-only view of an organization's concept tree.

    Built once per organization from a flat list of nodes.
    """

    def __init__(self, nodes: Iterable[TaxonomyNode]):
        self._nodes: dict[str, TaxonomyNode] = {}
        self._children: dict[Optional[str], list[TaxonomyNode]] = {}
        for node in nodes:
            self._nodes[node.id] = node
            self._children.setdefault(node.parent_id, []).append(node)
        for siblings in self._children.values():
            siblings.sort(key=lambda n: n.name)

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    def get(self, node_id: Optional[str]) -> Optional[TaxonomyNode]:
        if node_id is None:
            return None
        return self._nodes.get(node_id)

    def types(self) -> list[TaxonomyNode]:
        """Root nodes."""
        return list(self._children.get(None, []))

    def children(self, node_id: str) -> list[TaxonomyNode]:
        return list(self._children.get(node_id, []))

    def categories(self, type_id: str) -> list[TaxonomyNode]:
        return self.children(type_id)

    def subcategories(self, category_id: str) -> list[TaxonomyNode]:
        return self.children(category_id)

    def find_type_by_name(self, marker: str) -> Optional[TaxonomyNode]:
        """First type whose name contains ``marker`` (case-insensitive)."""
        marker = marker.lower()
        for node in self.types():
            if marker in node.name.lower():
                return node
        return None

    def find_type_by_view_mode(self, view_mode: ViewMode) -> Optional[TaxonomyNode]:
        """First type tagged with ``view_mode``."""
        for node in self.types():
            if node.effective_view_mode == view_mode:
                return node
        return None

    def egress_type_id(self, fallback: Optional[str]) -> Optional[str]:
        node = self.find_type_by_name(EGRESS_TYPE_MARKER)
        return node.id if node is not None else fallback

    def ingress_type_id(self, fallback: Optional[str]) -> Optional[str]:
        node = self.find_type_by_name(INGRESS_TYPE_MARKER)
        return node.id if node is not None else fallback

    def resolve_path(self, path: str) -> ClassificationPath:
        """Resolve 'Type > Category > Subcategory' into node ids.

        Raises:
            NotFoundError: If any segment does not exist
            ValidationError: If the path has more than three segments
        """
        parts = [p.strip() for p in path.split(">") if p.strip()]
        if not parts:
            raise NotFoundError(concept_path_not_found(path))
        if len(parts) > 3:
            raise ValidationError(f"Concept path '{path}' is deeper than type > category > subcategory")

        ids: list[str] = []
        parent_id: Optional[str] = None
        for part in parts:
            match = next((n for n in self._children.get(parent_id, []) if n.name == part), None)
            if match is None:
                raise NotFoundError(concept_path_not_found(path))
            ids.append(match.id)
            parent_id = match.id

        ids.extend([None] * (3 - len(ids)))
        return ClassificationPath(type_id=ids[0], category_id=ids[1], subcategory_id=ids[2])

    def format_path(self, node_id: Optional[str]) -> str:
        """Full path for a node (e.g., 'Egresos > Materiales')."""
        names = []
        node = self.get(node_id)
        while node is not None:
            names.append(node.name)
            node = self.get(node.parent_id)
        return PATH_SEPARATOR.join(reversed(names))

    def format_classification(self, path: ClassificationPath) -> str:
        deepest = path.subcategory_id or path.category_id or path.type_id
        return self.format_path(deepest)


class TaxonomyService:
    """Service for managing movement concepts."""

    def __init__(self, db: Database):
        """Initialize taxonomy service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_concept(
        self,
        name: str,
        parent_path: Optional[str] = None,
        view_mode: Optional[str] = None,
        organization_id: Optional[str] = None,
        variant_override: Optional[FormVariant] = None,
        concept_id: Optional[str] = None,
    ) -> str:
        """Create a concept.

        Args:
            name: Concept name
            parent_path: Optional parent concept path (e.g., "Egresos")
            view_mode: Optional form shape hint
            organization_id: Owning organization, None for a system concept
            variant_override: Optional variant forced by this concept
            concept_id: Optional fixed id (used for the legacy sentinel subcategories)

        Returns:
            Concept ID

        Raises:
            NotFoundError: If parent concept doesn't exist
            ValidationError: If view_mode is unknown
        """
        if view_mode is not None and view_mode.strip() not in {m.value for m in ViewMode}:
            raise ValidationError(f"Unknown view mode '{view_mode}'")

        parent_id = None
        if parent_path is not None:
            taxonomy = self.load_taxonomy(organization_id)
            parent_path_ids = taxonomy.resolve_path(parent_path)
            parent_id = (
                parent_path_ids.subcategory_id
                or parent_path_ids.category_id
                or parent_path_ids.type_id
            )

        concept_id = self.db.create_concept(
            name=name,
            parent_id=parent_id,
            view_mode=view_mode,
            organization_id=organization_id,
            variant_override=variant_override,
            concept_id=concept_id,
        )
        logger.debug("Created concept %s (%s) under %s", concept_id, name, parent_id)
        return concept_id

    def get_concept(self, concept_id: str) -> Optional[TaxonomyNode]:
        return self.db.get_concept(concept_id)

    def list_concepts(self, organization_id: Optional[str] = None) -> list[TaxonomyNode]:
        return self.db.list_concepts(organization_id)

    def load_taxonomy(self, organization_id: Optional[str] = None) -> Taxonomy:
        """Load the concept tree visible to an organization.

        Args:
            organization_id: Organization whose scoped concepts are included

        Returns:
            Taxonomy over system and organization concepts
        """
        return Taxonomy(self.db.list_concepts(organization_id))

    def get_concept_tree(self, organization_id: Optional[str] = None) -> list[dict]:
        """Get full concept tree.

        Returns:
            List of root concepts with nested children
        """
        return self.db.get_concept_tree(organization_id)
