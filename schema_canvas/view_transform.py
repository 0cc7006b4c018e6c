from __future__ import annotations

from schema_canvas.config import AppConfig
from schema_canvas.geometry import Point

ZOOM_ANCHORS: tuple[str, ...] = ("origin", "cursor")


class ViewTransform:
    """Zoom + pan shared by every entity on the canvas.

    screen = world * zoom + offset, world = (screen - offset) / zoom.
    """

    def __init__(
        self,
        *,
        zoom: float = 1.0,
        offset: Point = Point(0.0, 0.0),
        zoom_min: float = 0.2,
        zoom_max: float = 3.0,
        zoom_step: float = 0.1,
        wheel_sensitivity: float = 0.001,
        zoom_anchor: str = "origin",
    ) -> None:
        if zoom_min <= 0 or zoom_min > zoom_max:
            raise ValueError(
                f"View transform: zoom range [{zoom_min}, {zoom_max}] is invalid. "
                "Fix: use 0 < zoom_min <= zoom_max."
            )
        if zoom_anchor not in ZOOM_ANCHORS:
            raise ValueError(
                f"View transform: unsupported zoom anchor '{zoom_anchor}'. "
                f"Fix: use one of: {', '.join(ZOOM_ANCHORS)}."
            )
        self.zoom_min = float(zoom_min)
        self.zoom_max = float(zoom_max)
        self.zoom_step = float(zoom_step)
        self.wheel_sensitivity = float(wheel_sensitivity)
        self.zoom_anchor = zoom_anchor
        self.zoom = self.clamp_zoom(zoom)
        self.offset = offset

    @classmethod
    def from_config(cls, cfg: AppConfig) -> "ViewTransform":
        return cls(
            zoom_min=cfg.zoom_min,
            zoom_max=cfg.zoom_max,
            zoom_step=cfg.zoom_step,
            wheel_sensitivity=cfg.wheel_zoom_sensitivity,
            zoom_anchor=cfg.zoom_anchor,
        )

    def clamp_zoom(self, value: float) -> float:
        return min(max(self.zoom_min, float(value)), self.zoom_max)

    def world_to_screen(self, p: Point) -> Point:
        return Point(p.x * self.zoom + self.offset.x, p.y * self.zoom + self.offset.y)

    def screen_to_world(self, p: Point) -> Point:
        return Point((p.x - self.offset.x) / self.zoom, (p.y - self.offset.y) / self.zoom)

    def set_zoom(self, value: float, *, anchor: Point | None = None) -> float:
        """Clamp and apply; with the cursor policy the world point under anchor stays put."""
        next_zoom = self.clamp_zoom(value)
        if self.zoom_anchor == "cursor" and anchor is not None:
            world = self.screen_to_world(anchor)
            self.offset = Point(anchor.x - world.x * next_zoom, anchor.y - world.y * next_zoom)
        self.zoom = next_zoom
        return self.zoom

    def apply_wheel(self, delta_y: float, *, pointer: Point | None = None) -> float:
        # negative delta = scroll up = zoom in
        return self.set_zoom(self.zoom - float(delta_y) * self.wheel_sensitivity, anchor=pointer)

    def zoom_in(self, *, anchor: Point | None = None) -> float:
        return self.set_zoom(self.zoom + self.zoom_step, anchor=anchor)

    def zoom_out(self, *, anchor: Point | None = None) -> float:
        return self.set_zoom(self.zoom - self.zoom_step, anchor=anchor)

    def zoom_percent(self) -> int:
        return int(round(self.zoom * 100))

    # ---- panning ----

    def pan_anchor(self, pointer: Point) -> Point:
        return Point(pointer.x - self.offset.x, pointer.y - self.offset.y)

    def pan_to(self, pointer: Point, anchor: Point) -> Point:
        self.offset = Point(pointer.x - anchor.x, pointer.y - anchor.y)
        return self.offset

    def reset(self) -> None:
        self.zoom = self.clamp_zoom(1.0)
        self.offset = Point(0.0, 0.0)
