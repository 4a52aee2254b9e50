"""Camera orientation, perspective projection and depth ordering."""

from __future__ import annotations

import copy
import math
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from .config import CameraOptions

__all__ = [
    "InputState",
    "Camera",
    "Projection",
    "rotate_point",
    "project",
    "screen_origin",
    "depth_order",
]


def _clamp_unit(value: float) -> float:
    value = float(value)
    if not math.isfinite(value):
        return 0.0
    return max(-1.0, min(1.0, value))


@dataclass
class InputState:
    """Latest host input, written by event handlers and read once per tick.

    The pointer is normalised to ``[-1, 1]`` on both axes with ``(0, 0)`` at
    the centre of the surface.
    """

    pointer_x: float = 0.0
    pointer_y: float = 0.0
    width: int = 0
    height: int = 0
    forced_phase: Optional[int] = None

    def set_pointer(self, x: float, y: float) -> None:
        self.pointer_x = _clamp_unit(x)
        self.pointer_y = _clamp_unit(y)

    def snapshot(self) -> "InputState":
        """Return a copy for the current tick and consume the pending phase request."""

        frozen = copy.copy(self)
        self.forced_phase = None
        return frozen


@dataclass
class Projection:
    sx: float
    sy: float
    scale: float
    depth: float


def _rotate(
    x: float, y: float, z: float, cos_y: float, sin_y: float, cos_p: float, sin_p: float
) -> Tuple[float, float, float]:
    x1 = x * cos_y - z * sin_y
    z1 = z * cos_y + x * sin_y
    y1 = y * cos_p - z1 * sin_p
    z2 = z1 * cos_p + y * sin_p
    return x1, y1, z2


def rotate_point(x: float, y: float, z: float, yaw: float, pitch: float) -> Tuple[float, float, float]:
    """Rotate around the Y axis by ``yaw``, then around the X axis by ``pitch``."""

    return _rotate(x, y, z, math.cos(yaw), math.sin(yaw), math.cos(pitch), math.sin(pitch))


def project(
    x: float,
    y: float,
    z: float,
    origin: Tuple[float, float],
    focal_length: float,
    far_depth: float = math.inf,
    near_clip: float = 1.0,
) -> Optional[Projection]:
    """Perspective-project a camera-space point, ``None`` when it cannot be drawn."""

    denom = focal_length + z
    if not math.isfinite(denom) or denom < near_clip:
        return None
    if z > far_depth:
        return None
    scale = focal_length / denom
    if not math.isfinite(scale) or scale <= 0.0:
        return None
    sx = origin[0] + x * scale
    sy = origin[1] + y * scale
    if not (math.isfinite(sx) and math.isfinite(sy)):
        return None
    return Projection(sx, sy, scale, z)


def screen_origin(width: float, height: float, options: CameraOptions) -> Tuple[float, float]:
    """Projection centre; wide surfaces may shift it horizontally."""

    if width > options.wide_breakpoint:
        cx = width * options.wide_center_x
    else:
        cx = width * options.center_x
    return cx, height * options.center_y


def depth_order(depths: Sequence[float]) -> List[int]:
    """Indices of ``depths`` from farthest (largest z) to nearest."""

    return sorted(range(len(depths)), key=depths.__getitem__, reverse=True)


class Camera:
    """Auto-rotating camera with an optional pointer-driven offset."""

    def __init__(self, options: Optional[CameraOptions] = None, *, pointer_enabled: bool = False) -> None:
        self.options = options or CameraOptions()
        self.pointer_enabled = pointer_enabled
        self.reset()

    def reset(self) -> None:
        self.time = 0.0
        self.yaw = 0.0
        self.pitch = 0.0
        self._pointer_x = 0.0
        self._pointer_y = 0.0
        self._update_trig()

    def _update_trig(self) -> None:
        self._cos_yaw = math.cos(self.yaw)
        self._sin_yaw = math.sin(self.yaw)
        self._cos_pitch = math.cos(self.pitch)
        self._sin_pitch = math.sin(self.pitch)

    def update(self, time: float, pointer: Tuple[float, float] = (0.0, 0.0)) -> None:
        opts = self.options
        self.time = time
        px, py = pointer if self.pointer_enabled else (0.0, 0.0)
        if opts.pointer_smoothing > 0.0:
            k = min(1.0, opts.pointer_smoothing)
            self._pointer_x += (px - self._pointer_x) * k
            self._pointer_y += (py - self._pointer_y) * k
        else:
            self._pointer_x = px
            self._pointer_y = py
        sensitivity = opts.pointer_sensitivity
        self.yaw = time * opts.auto_speed + self._pointer_x * sensitivity
        self.pitch = (
            time * opts.pitch_speed
            + math.sin(time * opts.wobble_freq) * opts.wobble_amp
            + self._pointer_y * sensitivity
        )
        self._update_trig()

    def advance(self, pointer: Tuple[float, float] = (0.0, 0.0)) -> None:
        self.update(self.time + self.options.time_step, pointer)

    def rotate(self, x: float, y: float, z: float) -> Tuple[float, float, float]:
        return _rotate(x, y, z, self._cos_yaw, self._sin_yaw, self._cos_pitch, self._sin_pitch)

    def project(self, x: float, y: float, z: float, origin: Tuple[float, float]) -> Optional[Projection]:
        rx, ry, rz = self.rotate(x, y, z)
        opts = self.options
        return project(rx, ry, rz, origin, opts.focal_length, opts.far_depth, opts.near_clip)
