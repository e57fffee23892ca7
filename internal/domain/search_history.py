"""
Domain model for client-local recent searches.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from .product import SearchCriteria


@dataclass(frozen=True)
class RecentSearch:
    """
    A past search kept on the admin's machine.

    Attributes:
        filter_type: ``tags`` or ``attributes``.
        filter_value: Serialized selector value.
        category_id: Category restriction, if any.
        min_stock: Threshold, if any.
        label: Human readable summary shown in the recent searches list.
        timestamp: When the search was recorded (UTC).
    """

    filter_type: str
    filter_value: str
    category_id: Optional[int]
    min_stock: Optional[int]
    label: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def from_criteria(cls, criteria: SearchCriteria, label: str) -> "RecentSearch":
        return cls(
            filter_type=criteria.filter_type,
            filter_value=criteria.filter_value,
            category_id=criteria.category_id,
            min_stock=criteria.min_stock,
            label=label,
        )

    @property
    def key(self) -> tuple:
        """Uniqueness key: selector, category and threshold."""
        return (self.filter_type, self.filter_value, self.category_id, self.min_stock)

    def to_dict(self) -> dict:
        return {
            "filter_type": self.filter_type,
            "filter_value": self.filter_value,
            "category_id": self.category_id,
            "min_stock": self.min_stock,
            "label": self.label,
            "timestamp": self.timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "RecentSearch":
        return cls(
            filter_type=data["filter_type"],
            filter_value=data["filter_value"],
            category_id=data.get("category_id"),
            min_stock=data.get("min_stock"),
            label=data.get("label", ""),
            timestamp=datetime.fromisoformat(data["timestamp"]),
        )
