"""
Domain model for taxonomy terms and the category hierarchy.

This module keeps the structure of the category tree (levels, parent
links) apart from its presentation (the indentation prefix).
"""

from dataclasses import dataclass


HIERARCHY_INDENT = "— "


@dataclass(frozen=True)
class Term:
    """
    Taxonomy term as listed by the term store.

    Attributes:
        id: Term identifier.
        name: Human-readable term name.
        count: Number of products carrying the term.
        parent_id: Parent term ID, 0 for top-level terms.
    """

    id: int
    name: str
    count: int = 0
    parent_id: int = 0


@dataclass(frozen=True)
class AttributeTaxonomy:
    """
    Global product attribute (e.g. Color) owning a taxonomy of terms.

    Attributes:
        id: Attribute identifier in the catalog.
        name: Attribute slug without prefix (e.g. ``color``).
        label: Human-readable attribute label (e.g. ``Color``).
    """

    id: int
    name: str
    label: str


@dataclass(frozen=True)
class CategoryNode:
    """
    Flattened category hierarchy entry.

    Attributes:
        id: Category term identifier.
        name: Category name.
        parent_id: Parent category ID (0 for top-level categories).
        level: Depth in the parent chain, 0 for top-level categories.
    """

    id: int
    name: str
    parent_id: int
    level: int

    def display_name(self, indent: str = HIERARCHY_INDENT) -> str:
        """Name prefixed with one indent marker per level."""
        return indent * self.level + self.name

    def to_dict(self) -> dict:
        """
        Convert to dictionary representation.

        Returns:
            Dictionary with node data and its default display name.
        """
        return {
            "id": self.id,
            "name": self.name,
            "parent_id": self.parent_id,
            "level": self.level,
            "display_name": self.display_name(),
        }


@dataclass(frozen=True)
class FilterValue:
    """
    Option of an admin page select box.

    Attributes:
        value: Submitted value.
        label: Displayed label.
    """

    value: str
    label: str

    def to_dict(self) -> dict:
        return {"value": self.value, "label": self.label}
