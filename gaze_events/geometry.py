"""Pixel-space geometry for gaze events."""
from __future__ import annotations

import math
from typing import Tuple

from .config import ScreenConfig


class PixelScaler:
    """Scale normalized gaze coordinates to screen pixels."""

    def __init__(self, screen: ScreenConfig) -> None:
        self.screen = screen

    def to_pixels(self, x: float, y: float) -> Tuple[float, float]:
        return float(x) * self.screen.screen_width, float(y) * self.screen.screen_height


def amplitude_px(x1: float, y1: float, x2: float, y2: float) -> float:
    """Euclidean distance between two pixel positions."""
    return math.hypot(float(x2) - float(x1), float(y2) - float(y1))


def direction_deg(x1: float, y1: float, x2: float, y2: float) -> float:
    """Direction from the first to the second position in degrees.

    0 deg points along +x, values grow towards +y and lie in (-180, 180].
    NaN inputs give NaN.
    """
    angle = math.degrees(math.atan2(float(y2) - float(y1), float(x2) - float(x1)))
    if angle <= -180.0:
        angle += 360.0
    return angle
