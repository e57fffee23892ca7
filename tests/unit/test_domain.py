"""
Unit tests for domain models and value objects.
"""
import pytest

from internal.domain.errors import DomainValidationError
from internal.domain.product import (
    ProductRecord,
    SearchCriteria,
    calculate_needed_stock,
    format_stock_quantity,
    is_low_stock,
    sanitize_int,
    validate_search_params,
)
from internal.domain.value_objects import (
    AttributeSelector,
    TagSelector,
    TaxonomyQuery,
    attribute_taxonomy_name,
    parse_selector,
)


class TestSelectors:
    """Tests for selector parsing."""

    def test_tag_selector_from_term_id(self):
        """Test that a tag value resolves to a tag term match."""
        selector = parse_selector("tags", "42")

        assert selector == TagSelector(term_id=42)
        assert selector.to_query() == TaxonomyQuery(taxonomy="product_tag", term_id=42)

    def test_attribute_selector_uses_term_id_only(self):
        """Test that the attribute name only locates the taxonomy."""
        selector = parse_selector("attributes", "color|5")

        assert selector == AttributeSelector(attribute_name="color", term_id=5)
        assert selector.to_query() == TaxonomyQuery(taxonomy="pa_color", term_id=5)
        assert selector.value == "color|5"

    @pytest.mark.parametrize("value", ["", "color", "color|", "|5", "a|b|5", "color|x", "color|0"])
    def test_malformed_attribute_value_matches_nothing(self, value):
        """Test that malformed composite keys resolve to no selector."""
        assert parse_selector("attributes", value) is None

    @pytest.mark.parametrize("value", ["", "abc", "0", "-3"])
    def test_invalid_tag_value_matches_nothing(self, value):
        """Test that non-positive or non-numeric tag values resolve to no selector."""
        assert parse_selector("tags", value) is None

    def test_unknown_filter_type(self):
        """Test that an unknown filter type resolves to no selector."""
        assert parse_selector("brands", "42") is None

    def test_attribute_taxonomy_name_keeps_prefix(self):
        """Test that an already prefixed name is not prefixed twice."""
        assert attribute_taxonomy_name("pa_size") == "pa_size"
        assert attribute_taxonomy_name("size") == "pa_size"


class TestStockHelpers:
    """Tests for stock helper functions."""

    def test_calculate_needed_stock(self):
        """Test the shortfall against a threshold."""
        assert calculate_needed_stock(3, 5) == 2
        assert calculate_needed_stock(8, 5) == 0
        assert calculate_needed_stock(None, 5) == 5

    def test_is_low_stock(self):
        """Test the strict below-threshold rule."""
        assert is_low_stock(4, 5) is True
        assert is_low_stock(5, 5) is False
        assert is_low_stock(None, 5) is False
        assert is_low_stock(1, None) is False

    def test_format_stock_quantity(self):
        """Test stock display formatting."""
        assert format_stock_quantity(None) == "N/A"
        assert format_stock_quantity(1234) == "1,234"

    def test_sanitize_int(self):
        """Test that blank inputs mean not set."""
        assert sanitize_int("") is None
        assert sanitize_int(None) is None
        assert sanitize_int(" 7 ") == 7
        with pytest.raises(ValueError):
            sanitize_int("seven")


class TestSearchCriteria:
    """Tests for SearchCriteria validation."""

    def test_validate_search_params_collects_all_errors(self):
        """Test that every invalid field is reported."""
        errors = validate_search_params("brands", "", -1, -2)

        assert errors == [
            ("filter_type", "Invalid filter type."),
            ("filter_value", "Please select a filter value."),
            ("min_stock", "Minimum stock must be a positive number."),
            ("product_category", "Invalid product category."),
        ]

    def test_from_request_normalizes_inputs(self):
        """Test that blank threshold and category 0 mean not set."""
        criteria = SearchCriteria.from_request("tags", " 42 ", min_stock="", product_category="0")

        assert criteria.filter_value == "42"
        assert criteria.min_stock is None
        assert criteria.category_id is None

    def test_from_request_rejects_negative_threshold(self):
        """Test that a negative threshold is a validation error."""
        with pytest.raises(DomainValidationError) as exc_info:
            SearchCriteria.from_request("tags", "42", min_stock=-1)

        assert exc_info.value.field == "min_stock"
        assert exc_info.value.message == "Minimum stock must be a positive number."

    def test_from_request_rejects_missing_value(self):
        """Test that a missing filter value is a validation error."""
        with pytest.raises(DomainValidationError) as exc_info:
            SearchCriteria.from_request("tags", "")

        assert exc_info.value.field == "filter_value"

    def test_from_request_rejects_non_numeric_category(self):
        """Test that a non-numeric category is a validation error."""
        with pytest.raises(DomainValidationError) as exc_info:
            SearchCriteria.from_request("tags", "42", product_category="shoes")

        assert exc_info.value.field == "product_category"

    def test_malformed_selector_allowed_by_default(self):
        """Test that a malformed attribute key passes validation without strict mode."""
        criteria = SearchCriteria.from_request("attributes", "color")

        assert criteria.selector is None

    def test_malformed_selector_rejected_in_strict_mode(self):
        """Test that strict mode rejects a selector that matches nothing."""
        with pytest.raises(DomainValidationError) as exc_info:
            SearchCriteria.from_request("attributes", "color", strict_selectors=True)

        assert exc_info.value.field == "filter_value"


class TestProductRecord:
    """Tests for ProductRecord."""

    def test_from_catalog_computes_needed(self, product_factory):
        """Test that the shortfall is derived from the threshold."""
        product = product_factory(1, "Widget", 3, category_names=["Hardware"])

        record = ProductRecord.from_catalog(product, min_stock=5)

        assert record.needed_quantity == 2
        assert record.categories == ["Hardware"]

    def test_no_threshold_means_nothing_needed(self, product_factory):
        """Test that needed is zero without a threshold."""
        record = ProductRecord.from_catalog(product_factory(1, "Widget", 3), min_stock=None)

        assert record.needed_quantity == 0

    def test_with_stock_recomputes_needed(self, product_factory):
        """Test that a stock patch recomputes the shortfall."""
        record = ProductRecord.from_catalog(product_factory(1, "Widget", 3), min_stock=5)

        patched = record.with_stock(4, min_stock=5)

        assert patched.stock_quantity == 4
        assert patched.needed_quantity == 1
        assert record.stock_quantity == 3

    def test_dict_round_trip(self, product_factory):
        """Test conversion to and from a dict."""
        record = ProductRecord.from_catalog(product_factory(9, "Widget", 0, sku="W-9"), min_stock=2)

        assert ProductRecord.from_dict(record.to_dict()) == record
