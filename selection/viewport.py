"""
Viewport transform between screen pixels and image pixels.

screen = image * scale + offset
"""

from dataclasses import dataclass, field
from typing import Optional

from selection.models import Point

MIN_SCALE = 0.1
MAX_SCALE = 5.0
FIT_PADDING = 40.0
WHEEL_SENSITIVITY = 0.001


def clamp_scale(scale: float) -> float:
    return max(MIN_SCALE, min(MAX_SCALE, scale))


@dataclass
class Viewport:
    """
    Zoom/pan state of the workspace.

    Attributes:
        scale: Screen pixels per image pixel, kept in [MIN_SCALE, MAX_SCALE]
        offset: Screen position of the image origin
        visible_size: (width, height) of the visible area in screen pixels
    """
    scale: float = 1.0
    offset: Point = field(default_factory=lambda: Point(0.0, 0.0))
    visible_size: Optional[tuple[float, float]] = None

    def __post_init__(self):
        self.scale = clamp_scale(self.scale)

    def to_image_space(self, screen: Point) -> Point:
        """Map a screen point to image space."""
        return Point(
            (screen.x - self.offset.x) / self.scale,
            (screen.y - self.offset.y) / self.scale,
        )

    def to_screen_space(self, image: Point) -> Point:
        """Map an image-space point to the screen."""
        return Point(
            image.x * self.scale + self.offset.x,
            image.y * self.scale + self.offset.y,
        )

    def zoom(self, delta: float, anchor: Optional[Point] = None) -> float:
        """
        Change scale by delta, keeping the anchor fixed on screen.

        Without an anchor the centre of the visible area is held fixed; if the
        visible size is unknown the offset is left alone.

        Args:
            delta: Amount added to the current scale
            anchor: Screen point that must not move

        Returns:
            The new scale
        """
        old_scale = self.scale
        new_scale = clamp_scale(old_scale + delta)

        if anchor is None and self.visible_size is not None:
            anchor = Point(self.visible_size[0] / 2, self.visible_size[1] / 2)

        if anchor is not None:
            ratio = new_scale / old_scale
            self.offset = Point(
                anchor.x - (anchor.x - self.offset.x) * ratio,
                anchor.y - (anchor.y - self.offset.y) * ratio,
            )

        self.scale = new_scale
        return new_scale

    def wheel_zoom(self, delta_y: float, anchor: Point) -> float:
        """Zoom from a mouse-wheel delta, proportional to the current scale."""
        return self.zoom(-delta_y * WHEEL_SENSITIVITY * self.scale, anchor)

    def pan(self, dx: float, dy: float):
        """Translate the view by a screen-space delta. Unbounded."""
        self.offset = self.offset.translated(dx, dy)

    def fit_to_view(
        self,
        image_size: tuple[int, int],
        visible_size: Optional[tuple[float, float]] = None,
        padding: float = FIT_PADDING,
    ):
        """
        Scale the image to fit the visible area (never above 100%) and centre it.

        Args:
            image_size: (width, height) of the image in pixels
            visible_size: (width, height) of the visible area; remembered for
                later centre-anchored zooms
            padding: Screen pixels of margin to leave
        """
        if visible_size is not None:
            self.visible_size = visible_size
        if self.visible_size is None:
            raise ValueError("Visible size unknown; pass visible_size")

        img_w, img_h = image_size
        view_w, view_h = self.visible_size
        if img_w <= 0 or img_h <= 0:
            raise ValueError(f"Invalid image size: {image_size}")

        scale_x = (view_w - padding) / img_w
        scale_y = (view_h - padding) / img_h
        self.scale = clamp_scale(min(scale_x, scale_y, 1.0))
        self.offset = Point(
            (view_w - img_w * self.scale) / 2,
            (view_h - img_h * self.scale) / 2,
        )

    @property
    def zoom_percent(self) -> int:
        return round(self.scale * 100)

    def to_dict(self) -> dict:
        return {
            "scale": self.scale,
            "offset": [self.offset.x, self.offset.y],
            "zoom_percent": self.zoom_percent,
        }
