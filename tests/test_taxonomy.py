"""Tests for the concept taxonomy."""

import pytest

from movekit.domain.entities import FormVariant, ViewMode
from movekit.domain.errors import NotFoundError, ValidationError
from movekit.domain.taxonomy import ClassificationPath

ORG = "org-1"


class TestTaxonomyService:
    """Tests for TaxonomyService."""

    def test_create_root_and_child(self, taxonomy_service):
        root_id = taxonomy_service.create_concept("Egresos", view_mode="normal")
        child_id = taxonomy_service.create_concept("Materiales", parent_path="Egresos")

        child = taxonomy_service.get_concept(child_id)
        assert child.parent_id == root_id
        assert not child.is_type

    def test_unknown_parent(self, taxonomy_service):
        with pytest.raises(NotFoundError):
            taxonomy_service.create_concept("Materiales", parent_path="Egresos")

    def test_invalid_view_mode(self, taxonomy_service):
        with pytest.raises(ValidationError):
            taxonomy_service.create_concept("Egresos", view_mode="bogus")

    def test_organization_concepts_are_private(self, taxonomy_service):
        taxonomy_service.create_concept("Egresos")
        taxonomy_service.create_concept("Obra Norte", parent_path="Egresos", organization_id=ORG)

        assert len(taxonomy_service.load_taxonomy(ORG)) == 2
        assert len(taxonomy_service.load_taxonomy("org-2")) == 1

    def test_concept_tree(self, taxonomy_service, concepts):
        tree = taxonomy_service.get_concept_tree()
        egresos = next(node for node in tree if node["name"] == "Egresos")
        mano = next(child for child in egresos["children"] if child["name"] == "Mano de Obra")
        overrides = {child["name"]: child["variant_override"] for child in mano["children"]}
        assert overrides == {"Personal": FormVariant.PERSONAL, "Subcontratos": FormVariant.SUBCONTRATOS}


class TestTaxonomy:
    """Tests for path lookups over a loaded taxonomy."""

    def test_resolve_path(self, taxonomy, concepts):
        path = taxonomy.resolve_path("Egresos > Mano de Obra > Personal")
        assert path == ClassificationPath(
            concepts["Egresos"],
            concepts["Egresos > Mano de Obra"],
            concepts["Egresos > Mano de Obra > Personal"],
        )

    def test_resolve_type_only(self, taxonomy, concepts):
        assert taxonomy.resolve_path(" Conversión ") == ClassificationPath(concepts["Conversión"], None, None)

    def test_resolve_unknown_segment(self, taxonomy):
        with pytest.raises(NotFoundError):
            taxonomy.resolve_path("Egresos > Herramientas")

    def test_resolve_empty_path(self, taxonomy):
        with pytest.raises(NotFoundError):
            taxonomy.resolve_path(" > ")

    def test_resolve_too_deep(self, taxonomy):
        with pytest.raises(ValidationError):
            taxonomy.resolve_path("Egresos > Mano de Obra > Personal > Capataz")

    def test_format_path(self, taxonomy, concepts):
        assert taxonomy.format_path(concepts["Egresos > Mano de Obra > Personal"]) == (
            "Egresos > Mano de Obra > Personal"
        )
        assert taxonomy.format_path(None) == ""
        assert taxonomy.format_classification(ClassificationPath(concepts["Ingresos"], None, None)) == "Ingresos"

    def test_egress_and_ingress_types(self, taxonomy, concepts):
        assert taxonomy.egress_type_id("fallback") == concepts["Egresos"]
        assert taxonomy.ingress_type_id("fallback") == concepts["Ingresos"]

    def test_pair_types_fall_back_without_markers(self, taxonomy_service):
        taxonomy_service.create_concept("Gastos")
        taxonomy = taxonomy_service.load_taxonomy()
        assert taxonomy.egress_type_id("conversion-type") == "conversion-type"
        assert taxonomy.ingress_type_id(None) is None

    def test_find_type_by_view_mode(self, taxonomy, concepts):
        assert taxonomy.find_type_by_view_mode(ViewMode.TRANSFER).id == concepts["Transferencias Internas"]
        assert taxonomy.find_type_by_view_mode(ViewMode.MATERIALES) is None

    def test_membership(self, taxonomy, concepts):
        assert concepts["Egresos > Materiales"] in taxonomy
        assert "missing" not in taxonomy
        assert taxonomy.get("missing") is None
        assert [c.name for c in taxonomy.categories(concepts["Ingresos"])] == ["Cobranzas", "Ventas"]
