"""
Overlay drawing: boxes, labels and confidence over the source frame.
"""

from __future__ import annotations

from typing import Dict, Sequence, Tuple

import cv2
import numpy as np

from models.detection import Category, Detection, classify
from models.settings import Settings

Color = Tuple[int, int, int]

CLASS_COLORS: Dict[str, str] = {
    "person": "#FF6B6B",
    "car": "#4ECDC4",
    "dog": "#45B7D1",
    "cat": "#FFA07A",
    "bicycle": "#98D8C8",
    "motorcycle": "#F7DC6F",
}

CATEGORY_COLORS: Dict[Category, str] = {
    Category.PERSON: "#FF6B6B",
    Category.VEHICLE: "#4ECDC4",
    Category.ANIMAL: "#45B7D1",
    Category.OTHER: "#667EEA",
}

BOX_THICKNESS = 3
FILL_ALPHA = 0.2
FONT = cv2.FONT_HERSHEY_SIMPLEX
FONT_SCALE = 0.6
FONT_THICKNESS = 2
TEXT_COLOR: Color = (255, 255, 255)


def hex_to_bgr(value: str) -> Color:
    value = value.lstrip("#")
    r, g, b = (int(value[i:i + 2], 16) for i in (0, 2, 4))
    return (b, g, r)


def color_for(class_name: str) -> Color:
    """Per-class color, falling back to the color of the class's category."""
    hex_color = CLASS_COLORS.get(class_name) or CATEGORY_COLORS[classify(class_name)]
    return hex_to_bgr(hex_color)


def label_text(detection: Detection, settings: Settings) -> str:
    """'dog', '90%' or 'dog 90%' depending on the label/confidence toggles."""
    parts = []
    if settings.show_labels:
        parts.append(detection.class_name)
    if settings.show_confidence:
        parts.append(f"{int(round(detection.confidence * 100))}%")
    return " ".join(parts)


def draw_detections(frame: np.ndarray, detections: Sequence[Detection], settings: Settings) -> np.ndarray:
    """Return an annotated copy of frame. The input array is not modified."""
    out = frame.copy()
    h, w = out.shape[:2]

    for det in detections:
        x1, y1, x2, y2 = det.bbox.as_int_xyxy()
        x1, y1 = max(0, x1), max(0, y1)
        x2, y2 = min(w - 1, x2), min(h - 1, y2)
        color = color_for(det.class_name)

        if settings.show_boxes and x2 > x1 and y2 > y1:
            roi = out[y1:y2, x1:x2]
            tint = np.full_like(roi, color)
            out[y1:y2, x1:x2] = cv2.addWeighted(tint, FILL_ALPHA, roi, 1 - FILL_ALPHA, 0)
            cv2.rectangle(out, (x1, y1), (x2, y2), color, BOX_THICKNESS)

        text = label_text(det, settings)
        if text:
            (tw, th), _ = cv2.getTextSize(text, FONT, FONT_SCALE, FONT_THICKNESS)
            top = max(0, y1 - th - 10)
            cv2.rectangle(out, (x1, top), (x1 + tw + 10, top + th + 10), color, -1)
            cv2.putText(out, text, (x1 + 5, top + th + 4), FONT, FONT_SCALE, TEXT_COLOR, FONT_THICKNESS)

    return out
