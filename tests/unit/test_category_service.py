"""
Unit tests for the category hierarchy and CategoryService.
"""
import pytest
from unittest.mock import AsyncMock

from internal.domain.category import CategoryNode, Term
from internal.domain.errors import UpstreamError
from internal.usecase.category_service import CategoryService, build_hierarchy


class TestBuildHierarchy:
    """Tests for build_hierarchy."""

    @pytest.fixture
    def terms(self):
        """Unordered category terms."""
        return [
            Term(id=3, name="Tools", parent_id=0),
            Term(id=5, name="Screws", parent_id=4),
            Term(id=2, name="Bolts", parent_id=1),
            Term(id=1, name="Hardware", parent_id=0),
            Term(id=4, name="Anchors", parent_id=1),
        ]

    def test_depth_first_alphabetical_order(self, terms):
        """Test that children follow their parent, siblings in name order."""
        result = build_hierarchy(terms)

        assert [(n.name, n.level) for n in result] == [
            ("Hardware", 0),
            ("Anchors", 1),
            ("Screws", 2),
            ("Bolts", 1),
            ("Tools", 0),
        ]

    def test_display_names_are_indented(self, terms):
        """Test that each level adds one indent marker."""
        result = build_hierarchy(terms)

        assert [n.display_name() for n in result][:3] == [
            "Hardware",
            "— Anchors",
            "— — Screws",
        ]

    def test_orphans_are_dropped(self):
        """Test that terms whose parent is missing are left out."""
        result = build_hierarchy([
            Term(id=1, name="Hardware"),
            Term(id=9, name="Lost", parent_id=77),
        ])

        assert [n.id for n in result] == [1]

    def test_empty_input(self):
        """Test that no terms yield no nodes."""
        assert build_hierarchy([]) == []

    def test_node_to_dict(self):
        """Test node serialization."""
        node = CategoryNode(id=2, name="Bolts", parent_id=1, level=1)

        assert node.to_dict() == {
            "id": 2,
            "name": "Bolts",
            "parent_id": 1,
            "level": 1,
            "display_name": "— Bolts",
        }


class TestCategoryService:
    """Tests for CategoryService."""

    @pytest.fixture
    def service(self, catalog):
        """Create category service instance."""
        return CategoryService(catalog=catalog, term_store=catalog)

    @pytest.mark.asyncio
    async def test_all_categories(self, service):
        """Test listing the full hierarchy without a selector."""
        result = await service.get_categories()

        assert [n.display_name() for n in result] == ["Garden", "Hardware", "— Bolts"]

    @pytest.mark.asyncio
    async def test_scoped_to_selector(self, service):
        """Test that only categories of matching tracked products are listed."""
        result = await service.get_categories("tags", "7")

        assert [n.name for n in result] == ["Garden"]

    @pytest.mark.asyncio
    async def test_scoped_by_attribute(self, service):
        """Test scoping by an attribute term."""
        result = await service.get_categories("attributes", "color|5")

        assert [n.name for n in result] == ["Garden", "Hardware"]

    @pytest.mark.asyncio
    async def test_no_matching_products_returns_empty(self, service, catalog):
        """Test that a selector without products yields an empty list."""
        result = await service.get_categories("tags", "999")

        assert result == []

    @pytest.mark.asyncio
    async def test_malformed_selector_returns_empty(self, service, catalog):
        """Test that a malformed selector never queries the catalog."""
        result = await service.get_categories("attributes", "color")

        assert result == []
        assert catalog.queries == []

    @pytest.mark.asyncio
    async def test_term_store_failure_propagates(self):
        """Test that a lookup failure is not reported as zero categories."""
        # Setup
        term_store = AsyncMock()
        term_store.list_terms = AsyncMock(side_effect=UpstreamError("list_terms", "timeout"))
        service = CategoryService(catalog=AsyncMock(), term_store=term_store)

        # Execute / Assert
        with pytest.raises(UpstreamError):
            await service.get_categories()
