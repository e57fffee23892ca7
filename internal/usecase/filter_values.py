"""
Filter Values Use Case.

Lists the tag or attribute options of the admin page selector, and turns a
selected value back into a readable label.
"""
from internal.domain.category import FilterValue
from internal.domain.errors import DomainValidationError
from internal.domain.value_objects import (
    AttributeSelector,
    FilterType,
    TAG_TAXONOMY,
    TagSelector,
    attribute_taxonomy_name,
    parse_selector,
)
from internal.infrastructure.catalog.base import TermStore
from pkg.logger.logger import get_logger


logger = get_logger(__name__)


def _count_suffix(count: int) -> str:
    return f" ({count} products)"


class FilterValuesUseCase:
    """Use case for the selector options and labels."""

    def __init__(self, term_store: TermStore) -> None:
        self._term_store = term_store

    async def execute(self, filter_type: str) -> list[FilterValue]:
        """
        List selectable values for a filter type.

        Tags yield ``term_id`` values; attributes yield ``name|term_id``
        composite values. Labels end with the product count.

        Raises:
            DomainValidationError: If the filter type is unknown.
            UpstreamError: If the term store fails.
        """
        if filter_type == FilterType.TAGS.value:
            values = [
                FilterValue(value=str(tag.id), label=tag.name + _count_suffix(tag.count))
                for tag in await self._term_store.list_terms(TAG_TAXONOMY)
            ]
        elif filter_type == FilterType.ATTRIBUTES.value:
            values = []
            for attribute in await self._term_store.list_attribute_taxonomies():
                terms = await self._term_store.list_terms(
                    attribute_taxonomy_name(attribute.name)
                )
                values.extend(
                    FilterValue(
                        value=AttributeSelector(attribute.name, term.id).value,
                        label=f"{attribute.label}: {term.name}" + _count_suffix(term.count),
                    )
                    for term in terms
                )
        else:
            raise DomainValidationError("Invalid filter type.", field="filter_type")

        logger.info("Filter values loaded", filter_type=filter_type, count=len(values))
        return values

    async def describe(self, filter_type: str, filter_value: str) -> str:
        """
        Build a readable label for a selector.

        Returns:
            Tag name, ``Attribute: term``, or an "Unknown ..." placeholder.
        """
        selector = parse_selector(filter_type, filter_value)

        if filter_type == FilterType.TAGS.value:
            if isinstance(selector, TagSelector):
                for term in await self._term_store.list_terms(TAG_TAXONOMY):
                    if term.id == selector.term_id:
                        return term.name
            return "Unknown Tag"

        if filter_type == FilterType.ATTRIBUTES.value:
            if isinstance(selector, AttributeSelector):
                attributes = await self._term_store.list_attribute_taxonomies()
                attribute = next(
                    (a for a in attributes if a.name == selector.attribute_name), None
                )
                if attribute is not None:
                    terms = await self._term_store.list_terms(
                        attribute_taxonomy_name(attribute.name)
                    )
                    for term in terms:
                        if term.id == selector.term_id:
                            return f"{attribute.label}: {term.name}"
            return "Unknown Attribute"

        return "Unknown Filter"
