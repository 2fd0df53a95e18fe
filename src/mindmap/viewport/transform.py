"""Zoom and pan transform for the graph viewport."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from mindmap.layout.bounds import Bounds

logger = logging.getLogger(__name__)


@dataclass
class ViewportConfig:
    """Viewport limits, fit/focus behavior and minimap geometry."""

    min_scale: float = 0.1
    max_scale: float = 8.0

    fit_padding: float = 60.0
    fit_max_scale: float = 2.0  # Sparse graphs are not blown up past this
    focus_scale: float = 1.5

    # Transition durations in seconds
    fit_duration: float = 0.75
    focus_duration: float = 0.5

    minimap_width: float = 160.0
    minimap_height: float = 120.0
    minimap_padding: float = 10.0


@dataclass(frozen=True)
class ZoomTransform:
    """Translate (x, y) then scale uniformly by k: screen = sim * k + (x, y)."""

    x: float = 0.0
    y: float = 0.0
    k: float = 1.0

    def apply(self, px: float, py: float) -> tuple[float, float]:
        return (px * self.k + self.x, py * self.k + self.y)

    def invert(self, sx: float, sy: float) -> tuple[float, float]:
        return ((sx - self.x) / self.k, (sy - self.y) / self.k)

    def interpolate(self, other: ZoomTransform, t: float) -> ZoomTransform:
        return ZoomTransform(
            x=self.x + (other.x - self.x) * t,
            y=self.y + (other.y - self.y) * t,
            k=self.k + (other.k - self.k) * t,
        )

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y, "k": self.k}


IDENTITY = ZoomTransform()


def ease_cubic_in_out(t: float) -> float:
    t *= 2
    if t <= 1:
        return t * t * t / 2
    t -= 2
    return (t * t * t + 2) / 2


@dataclass
class TransformTransition:
    """An animated move between two transforms."""

    start: ZoomTransform
    end: ZoomTransform
    duration: float
    elapsed: float = 0.0

    @property
    def done(self) -> bool:
        return self.elapsed >= self.duration

    def advance(self, dt: float) -> ZoomTransform:
        self.elapsed = min(self.elapsed + dt, self.duration)
        if self.duration <= 0 or self.done:
            return self.end
        return self.start.interpolate(self.end, ease_cubic_in_out(self.elapsed / self.duration))


class Viewport:
    """Screen-space window onto the simulated layout.

    Holds the current transform (scale clamped to the configured range),
    an optional running transition, and change listeners such as the
    minimap.
    """

    def __init__(
        self, width: float, height: float, config: ViewportConfig | None = None
    ) -> None:
        self.width = width
        self.height = height
        self.config = config or ViewportConfig()
        self.transform = IDENTITY
        self.transition: TransformTransition | None = None
        self._listeners: list[Callable[[ZoomTransform], None]] = []

    def on_change(self, listener: Callable[[ZoomTransform], None]) -> None:
        self._listeners.append(listener)

    def _clamp(self, transform: ZoomTransform) -> ZoomTransform:
        k = min(max(transform.k, self.config.min_scale), self.config.max_scale)
        if k == transform.k:
            return transform
        return ZoomTransform(transform.x, transform.y, k)

    def _set(self, transform: ZoomTransform) -> None:
        self.transform = self._clamp(transform)
        for listener in self._listeners:
            listener(self.transform)

    # ==========================================================================
    # Direct manipulation (user pan/zoom cancels any running transition)
    # ==========================================================================

    def set_transform(self, transform: ZoomTransform) -> None:
        self.transition = None
        self._set(transform)

    def pan_by(self, dx: float, dy: float) -> None:
        t = self.transform
        self.set_transform(ZoomTransform(t.x + dx, t.y + dy, t.k))

    def zoom_by(self, factor: float, anchor: tuple[float, float] | None = None) -> None:
        """Scale around a screen point (default: viewport center), keeping it fixed."""
        ax, ay = anchor if anchor is not None else (self.width / 2, self.height / 2)
        t = self.transform
        k = min(max(t.k * factor, self.config.min_scale), self.config.max_scale)
        px, py = t.invert(ax, ay)
        self.set_transform(ZoomTransform(ax - px * k, ay - py * k, k))

    def resize(self, width: float, height: float) -> None:
        self.width = width
        self.height = height

    # ==========================================================================
    # Fit and focus
    # ==========================================================================

    def fit_transform(self, bounds: Bounds) -> ZoomTransform:
        """Transform that centers `bounds` (plus padding) in the viewport.

        Zero-extent bounds use scale 1 instead of dividing by zero.
        """
        cx, cy = bounds.center
        if bounds.degenerate:
            k = 1.0
        else:
            pad = self.config.fit_padding
            k = min(
                self.width / (bounds.width + pad * 2),
                self.height / (bounds.height + pad * 2),
                self.config.fit_max_scale,
            )
        return self._clamp(
            ZoomTransform(self.width / 2 - cx * k, self.height / 2 - cy * k, k)
        )

    def focus_transform(self, x: float, y: float) -> ZoomTransform:
        """Transform that centers a point at the fixed focus scale."""
        k = self.config.focus_scale
        return self._clamp(ZoomTransform(self.width / 2 - x * k, self.height / 2 - y * k, k))

    def zoom_to_fit(self, bounds: Bounds | None, animate: bool = True) -> None:
        if bounds is None:
            return
        target = self.fit_transform(bounds)
        if animate:
            self.transition_to(target, self.config.fit_duration)
        else:
            self.set_transform(target)

    def focus(self, x: float, y: float, animate: bool = True) -> None:
        target = self.focus_transform(x, y)
        if animate:
            self.transition_to(target, self.config.focus_duration)
        else:
            self.set_transform(target)

    # ==========================================================================
    # Transitions
    # ==========================================================================

    def transition_to(self, target: ZoomTransform, duration: float) -> None:
        self.transition = TransformTransition(self.transform, self._clamp(target), duration)

    def advance(self, dt: float) -> bool:
        """Move a running transition forward; returns True while animating."""
        if self.transition is None:
            return False
        self._set(self.transition.advance(dt))
        if self.transition.done:
            self.transition = None
            return False
        return True

    # ==========================================================================
    # Queries
    # ==========================================================================

    def visible_bounds(self) -> Bounds:
        """The region of simulation space currently on screen."""
        x0, y0 = self.transform.invert(0, 0)
        x1, y1 = self.transform.invert(self.width, self.height)
        return Bounds(x0, y0, x1 - x0, y1 - y0)
