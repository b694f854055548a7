"""
Detection models for object detection results.

Boxes use the (x, y, width, height) convention of the detection model output.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple


class Category(str, Enum):
    """Coarse object categories used by the category filters."""
    PERSON = "person"
    VEHICLE = "vehicle"
    ANIMAL = "animal"
    OTHER = "other"


CATEGORY_BY_CLASS: Dict[str, Category] = {
    "person": Category.PERSON,
    "bicycle": Category.VEHICLE,
    "car": Category.VEHICLE,
    "motorcycle": Category.VEHICLE,
    "airplane": Category.VEHICLE,
    "bus": Category.VEHICLE,
    "train": Category.VEHICLE,
    "truck": Category.VEHICLE,
    "boat": Category.VEHICLE,
    "bird": Category.ANIMAL,
    "cat": Category.ANIMAL,
    "dog": Category.ANIMAL,
    "horse": Category.ANIMAL,
    "sheep": Category.ANIMAL,
    "cow": Category.ANIMAL,
    "elephant": Category.ANIMAL,
    "bear": Category.ANIMAL,
    "zebra": Category.ANIMAL,
    "giraffe": Category.ANIMAL,
}


def classify(class_name: Optional[str]) -> Category:
    """Map a detector class name to its category. Unknown names map to OTHER."""
    if not class_name:
        return Category.OTHER
    return CATEGORY_BY_CLASS.get(class_name.strip().lower(), Category.OTHER)


@dataclass(frozen=True)
class BoundingBox:
    """
    A bounding box in pixel coordinates.

    Attributes:
        x: Left edge x coordinate.
        y: Top edge y coordinate.
        width: Box width.
        height: Box height.
    """
    x: float
    y: float
    width: float
    height: float

    @property
    def x2(self) -> float:
        return self.x + self.width

    @property
    def y2(self) -> float:
        return self.y + self.height

    @property
    def area(self) -> float:
        return self.width * self.height

    def as_tuple(self) -> Tuple[float, float, float, float]:
        """Return as (x, y, width, height) tuple."""
        return (self.x, self.y, self.width, self.height)

    def as_int_xyxy(self) -> Tuple[int, int, int, int]:
        """Return integer corner coordinates (x1, y1, x2, y2) for drawing."""
        return (int(self.x), int(self.y), int(self.x2), int(self.y2))

    @classmethod
    def from_xyxy(cls, x1: float, y1: float, x2: float, y2: float) -> "BoundingBox":
        """Create from corner coordinates."""
        return cls(x=x1, y=y1, width=x2 - x1, height=y2 - y1)


@dataclass(frozen=True)
class Detection:
    """
    A single detection produced by the model for one frame.

    Attributes:
        class_name: Human-readable class name (e.g. "dog").
        confidence: Detection confidence score (0-1).
        bbox: Bounding box in pixel coordinates.
    """
    class_name: str
    confidence: float
    bbox: BoundingBox

    @property
    def category(self) -> Category:
        return classify(self.class_name)

    @classmethod
    def from_xywh(
        cls,
        class_name: str,
        confidence: float,
        x: float,
        y: float,
        w: float,
        h: float,
    ) -> "Detection":
        return cls(class_name=class_name, confidence=confidence, bbox=BoundingBox(x, y, w, h))

    def to_dict(self) -> Dict[str, object]:
        return {
            "class_name": self.class_name,
            "confidence": self.confidence,
            "category": self.category.value,
            "bbox": list(self.bbox.as_tuple()),
        }
