"""
User-adjustable viewer settings.

Mutated only through the controls; read by the pipeline and the overlay
renderer on every frame.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from .detection import Category


def _all_categories_enabled() -> Dict[Category, bool]:
    return {category: True for category in Category}


@dataclass
class Settings:
    threshold: float = 0.5
    show_boxes: bool = True
    show_labels: bool = True
    show_confidence: bool = True
    category_filters: Dict[Category, bool] = field(default_factory=_all_categories_enabled)

    def __post_init__(self) -> None:
        self.set_threshold(self.threshold)
        filters = _all_categories_enabled()
        for key, enabled in (self.category_filters or {}).items():
            filters[Category(key)] = bool(enabled)
        self.category_filters = filters

    def set_threshold(self, value: float) -> None:
        value = float(value)
        if not 0.0 <= value <= 1.0:
            raise ValueError(f"threshold must be between 0 and 1, got {value}")
        self.threshold = value

    def set_category_filter(self, category: Category | str, enabled: bool) -> None:
        self.category_filters[Category(category)] = bool(enabled)

    def is_category_enabled(self, category: Category) -> bool:
        return self.category_filters.get(category, True)

    def update(
        self,
        threshold: Optional[float] = None,
        show_boxes: Optional[bool] = None,
        show_labels: Optional[bool] = None,
        show_confidence: Optional[bool] = None,
        category_filters: Optional[Dict[str, bool]] = None,
    ) -> None:
        """Apply a partial update. Fields left as None are unchanged."""
        if threshold is not None:
            self.set_threshold(threshold)
        if show_boxes is not None:
            self.show_boxes = bool(show_boxes)
        if show_labels is not None:
            self.show_labels = bool(show_labels)
        if show_confidence is not None:
            self.show_confidence = bool(show_confidence)
        for key, enabled in (category_filters or {}).items():
            self.set_category_filter(key, enabled)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Settings":
        return cls(
            threshold=d.get("threshold", 0.5),
            show_boxes=d.get("show_boxes", True),
            show_labels=d.get("show_labels", True),
            show_confidence=d.get("show_confidence", True),
            category_filters=d.get("category_filters") or {},
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "threshold": self.threshold,
            "show_boxes": self.show_boxes,
            "show_labels": self.show_labels,
            "show_confidence": self.show_confidence,
            "category_filters": {c.value: v for c, v in self.category_filters.items()},
        }
