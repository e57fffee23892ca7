"""
Value Objects for the inventory insights domain.

Selectors decide which products are in scope of a report. They are
immutable and defined by their attributes.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union


TAG_TAXONOMY = "product_tag"
CATEGORY_TAXONOMY = "product_cat"
ATTRIBUTE_TAXONOMY_PREFIX = "pa_"
ATTRIBUTE_SEPARATOR = "|"


class FilterType(str, Enum):
    """Kind of selector chosen on the admin page."""

    TAGS = "tags"
    ATTRIBUTES = "attributes"


class ExportScope(str, Enum):
    """Which part of the filtered set a CSV export covers."""

    ALL = "all"
    SELECTED = "selected"


def attribute_taxonomy_name(attribute_name: str) -> str:
    """
    Get the taxonomy that holds the terms of a global attribute.

    Args:
        attribute_name: Attribute slug without prefix (e.g. ``color``).

    Returns:
        Taxonomy name (e.g. ``pa_color``).
    """
    if attribute_name.startswith(ATTRIBUTE_TAXONOMY_PREFIX):
        return attribute_name
    return f"{ATTRIBUTE_TAXONOMY_PREFIX}{attribute_name}"


def _parse_term_id(raw: str) -> Optional[int]:
    raw = raw.strip()
    if not raw.isdigit():
        return None
    term_id = int(raw)
    return term_id if term_id > 0 else None


@dataclass(frozen=True)
class TaxonomyQuery:
    """
    Exact term match on one taxonomy.

    Attributes:
        taxonomy: Taxonomy name (``product_tag``, ``product_cat``, ``pa_*``).
        term_id: Term identifier within that taxonomy.
    """

    taxonomy: str
    term_id: int


@dataclass(frozen=True)
class TagSelector:
    """
    Selector matching products carrying one product tag.

    Attributes:
        term_id: Tag term identifier.
    """

    term_id: int

    @property
    def filter_type(self) -> FilterType:
        return FilterType.TAGS

    @property
    def value(self) -> str:
        """Serialized selector value as sent by the admin page."""
        return str(self.term_id)

    def to_query(self) -> TaxonomyQuery:
        return TaxonomyQuery(taxonomy=TAG_TAXONOMY, term_id=self.term_id)


@dataclass(frozen=True)
class AttributeSelector:
    """
    Selector matching products carrying one global attribute term.

    The attribute name only locates the taxonomy; matching uses the term id.

    Attributes:
        attribute_name: Attribute slug without the ``pa_`` prefix.
        term_id: Attribute term identifier.
    """

    attribute_name: str
    term_id: int

    @property
    def filter_type(self) -> FilterType:
        return FilterType.ATTRIBUTES

    @property
    def value(self) -> str:
        """Serialized ``name|term_id`` composite key."""
        return f"{self.attribute_name}{ATTRIBUTE_SEPARATOR}{self.term_id}"

    def to_query(self) -> TaxonomyQuery:
        return TaxonomyQuery(
            taxonomy=attribute_taxonomy_name(self.attribute_name),
            term_id=self.term_id,
        )

    @classmethod
    def parse(cls, value: str) -> Optional["AttributeSelector"]:
        """
        Parse a ``name|term_id`` composite key.

        Returns:
            The selector, or None when the value does not split into exactly
            two non-empty parts or the term id is not a positive integer.
        """
        parts = value.strip().split(ATTRIBUTE_SEPARATOR)
        if len(parts) != 2:
            return None
        attribute_name = parts[0].strip()
        term_id = _parse_term_id(parts[1])
        if not attribute_name or term_id is None:
            return None
        return cls(attribute_name=attribute_name, term_id=term_id)


FilterSelector = Union[TagSelector, AttributeSelector]


def parse_selector(filter_type: str, filter_value: str) -> Optional[FilterSelector]:
    """
    Resolve the raw admin page inputs into a selector.

    Args:
        filter_type: ``tags`` or ``attributes``.
        filter_value: Tag term id, or ``name|term_id`` for attributes.

    Returns:
        A selector, or None when the inputs match nothing.
    """
    if not filter_value:
        return None
    if filter_type == FilterType.TAGS.value:
        term_id = _parse_term_id(filter_value)
        return TagSelector(term_id=term_id) if term_id is not None else None
    if filter_type == FilterType.ATTRIBUTES.value:
        return AttributeSelector.parse(filter_value)
    return None
