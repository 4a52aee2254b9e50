"""Default parameters and typed option blocks for the morph engine.

Scenes are described by nested mappings that mirror :data:`DEFAULTS`.  A scene
mapping only needs to list the values it overrides; :func:`merge_config`
folds it over the defaults before the option dataclasses below read it.
"""

from __future__ import annotations

import copy
import math
from dataclasses import dataclass, fields
from typing import Any, ClassVar, Dict, Mapping, Tuple

__all__ = [
    "DEFAULTS",
    "TOOLTIPS",
    "MorphConfigError",
    "UnknownShapeError",
    "CameraOptions",
    "IntegratorOptions",
    "TimingOptions",
    "RenderOptions",
    "JitterOptions",
    "SystemOptions",
    "merge_config",
    "hex_to_rgb",
]

RGB = Tuple[float, float, float]


class MorphConfigError(ValueError):
    """Raised when a scene or engine parameter cannot be honoured."""


class UnknownShapeError(MorphConfigError):
    """Raised when a phase references a shape generator that does not exist."""


DEFAULTS = dict(
    camera=dict(
        focalLength=600.0, nearClip=1.0, farDepth=4000.0,
        timeStep=0.01, autoSpeed=0.2, pitchSpeed=0.0,
        wobbleAmp=0.1, wobbleFreq=0.5,
        pointerSensitivity=0.5, pointerSmoothing=0.0,
        centerX=0.5, centerY=0.5, wideBreakpoint=1024, wideCenterX=0.5,
    ),
    integrator=dict(mode="easing", rate=0.05, stiffness=0.02, damping=0.9, colorRate=0.05),
    timing=dict(phaseFrames=300, transitionFrames=0, transitionRate=0.05, settledRate=0.02),
    render=dict(
        baseSize=1.5, largeRatio=0.0, largeSize=2.0,
        alphaScale=0.7, alphaOffset=0.0, shape="circle",
        clearColor="#020202", transparent=False, trails=False, trailAlpha=0.25,
        edges=False, edgeNeighbors=3, edgeDistance=30.0, edgeAlpha=0.15,
        edgeColor="#ffffff", edgeStride=1, depthSort=True,
    ),
    jitter=dict(amplitude=0.0, frequency=1.0),
    system=dict(particles=400, scatter=600.0, frameIntervalMs=16, dprClamp=2.0, pointer=False),
)

TOOLTIPS = {
    "camera.focalLength": "Perspective focal length; larger values flatten the depth effect.",
    "camera.nearClip": "Minimum distance in front of the camera plane before a particle is hidden.",
    "camera.farDepth": "Particles further than this camera-space depth are not drawn.",
    "camera.timeStep": "Camera time added on every frame.",
    "camera.autoSpeed": "Automatic yaw speed, in radians per unit of camera time.",
    "camera.pitchSpeed": "Automatic pitch drift, in radians per unit of camera time.",
    "camera.wobbleAmp": "Amplitude of the slow pitch oscillation, in radians.",
    "camera.wobbleFreq": "Frequency of the slow pitch oscillation.",
    "camera.pointerSensitivity": "How far the pointer rotates the scene, in radians at the edge of the surface.",
    "camera.pointerSmoothing": "Per-frame pointer follow rate; 0 applies the pointer immediately.",
    "camera.centerX": "Horizontal projection centre as a fraction of the surface width.",
    "camera.centerY": "Vertical projection centre as a fraction of the surface height.",
    "camera.wideBreakpoint": "Surface width above which the wide horizontal centre is used.",
    "camera.wideCenterX": "Horizontal projection centre used on wide surfaces.",
    "integrator.mode": "Motion model: 'easing' (fractional approach) or 'spring' (damped velocity).",
    "integrator.rate": "Fraction of the remaining distance covered per frame when easing.",
    "integrator.stiffness": "Spring stiffness applied to the distance to the target.",
    "integrator.damping": "Velocity retained per frame by the spring model.",
    "integrator.colorRate": "Fraction of the remaining colour difference covered per frame.",
    "timing.phaseFrames": "Default phase duration in frames.",
    "timing.transitionFrames": "Frames after a phase change that use the transition easing rate; 0 disables it.",
    "timing.transitionRate": "Easing rate used during the transition window.",
    "timing.settledRate": "Easing rate used once the transition window is over.",
    "render.baseSize": "Particle radius in pixels at unit perspective scale.",
    "render.largeRatio": "Share of particles drawn with the large size.",
    "render.largeSize": "Size multiplier of the large particles.",
    "render.alphaScale": "Alpha gained per unit of perspective scale.",
    "render.alphaOffset": "Alpha removed from every particle before clamping.",
    "render.shape": "Default particle shape: 'circle' or 'square'.",
    "render.clearColor": "Background colour.",
    "render.transparent": "Clear the surface to transparent instead of the background colour.",
    "render.trails": "Clear with a translucent fill so earlier frames leave trails.",
    "render.trailAlpha": "Opacity of the trail fill.",
    "render.edges": "Draw lines between nearby neighbouring particles.",
    "render.edgeNeighbors": "How many following particles are tested for an edge.",
    "render.edgeDistance": "Maximum screen distance of an edge at unit perspective scale.",
    "render.edgeAlpha": "Edge opacity at unit perspective scale.",
    "render.edgeColor": "Edge colour.",
    "render.edgeStride": "Only every n-th particle starts edges.",
    "render.depthSort": "Draw particles back to front.",
    "jitter.amplitude": "Per-frame displacement noise applied to drawn positions.",
    "jitter.frequency": "Speed of the displacement noise.",
    "system.particles": "Number of particles; fixed for the lifetime of the engine.",
    "system.scatter": "Extent of the initial random scatter.",
    "system.frameIntervalMs": "Delay between two frames of the animation loop.",
    "system.dprClamp": "Upper bound of the device pixel ratio used for the backing surface.",
    "system.pointer": "Let pointer movement rotate the camera.",
}


def _coerce_float(value: object, default: float = 0.0) -> float:
    """Return ``value`` converted to ``float`` when possible."""

    if value is None:
        return default
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        try:
            number = float(str(value))
        except (TypeError, ValueError):
            return default
    if not math.isfinite(number):
        return default
    return number


def _coerce_bool(value: object, default: bool = False) -> bool:
    if value is None:
        return default
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return bool(value)


def merge_config(base: Mapping[str, Any], overrides: Mapping[str, Any]) -> Dict[str, Any]:
    """Return a deep copy of ``base`` with ``overrides`` folded in section by section."""

    merged: Dict[str, Any] = copy.deepcopy(dict(base))
    for key, value in overrides.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, Mapping):
            merged[key] = merge_config(current, value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def hex_to_rgb(value: str) -> RGB:
    """Convert ``#rgb`` or ``#rrggbb`` into a float triple in ``[0, 1]``."""

    text = str(value).strip().lstrip("#")
    if len(text) == 3:
        text = "".join(ch * 2 for ch in text)
    if len(text) != 6:
        raise MorphConfigError(f"invalid colour {value!r}")
    try:
        r, g, b = (int(text[i:i + 2], 16) for i in (0, 2, 4))
    except ValueError as exc:
        raise MorphConfigError(f"invalid colour {value!r}") from exc
    return (r / 255.0, g / 255.0, b / 255.0)


def _check_rate(rate: float, name: str = "rate") -> float:
    rate = float(rate)
    if not (0.0 < rate <= 1.0):
        raise MorphConfigError(f"{name} must be in (0, 1], got {rate}")
    return rate


class _OptionBlock:
    """Build a dataclass from a camelCase section of :data:`DEFAULTS`."""

    SECTION: ClassVar[str] = ""

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None = None):
        section = dict(DEFAULTS[cls.SECTION])
        if data:
            section.update(data)
        values: Dict[str, Any] = {}
        for f in fields(cls):  # type: ignore[arg-type]
            key = _camel(f.name)
            if key not in section:
                continue
            raw = section[key]
            default = getattr(cls, f.name)
            if isinstance(default, bool):
                values[f.name] = _coerce_bool(raw, default)
            elif isinstance(default, int):
                values[f.name] = int(_coerce_float(raw, default))
            elif isinstance(default, float):
                values[f.name] = _coerce_float(raw, default)
            else:
                values[f.name] = str(raw)
        return cls(**values)


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


@dataclass
class CameraOptions(_OptionBlock):
    SECTION: ClassVar[str] = "camera"

    focal_length: float = 600.0
    near_clip: float = 1.0
    far_depth: float = 4000.0
    time_step: float = 0.01
    auto_speed: float = 0.2
    pitch_speed: float = 0.0
    wobble_amp: float = 0.1
    wobble_freq: float = 0.5
    pointer_sensitivity: float = 0.5
    pointer_smoothing: float = 0.0
    center_x: float = 0.5
    center_y: float = 0.5
    wide_breakpoint: int = 1024
    wide_center_x: float = 0.5

    def __post_init__(self) -> None:
        if self.focal_length <= 0:
            raise MorphConfigError("camera.focalLength must be positive")
        self.near_clip = max(1e-6, self.near_clip)


@dataclass
class IntegratorOptions(_OptionBlock):
    SECTION: ClassVar[str] = "integrator"

    mode: str = "easing"
    rate: float = 0.05
    stiffness: float = 0.02
    damping: float = 0.9
    color_rate: float = 0.05

    def __post_init__(self) -> None:
        self.mode = self.mode.strip().lower()
        if self.mode not in ("easing", "spring"):
            raise MorphConfigError(f"unknown integrator mode {self.mode!r}")
        _check_rate(self.rate, "integrator.rate")
        _check_rate(self.color_rate, "integrator.colorRate")
        if self.stiffness <= 0:
            raise MorphConfigError("integrator.stiffness must be positive")
        if not (0.0 <= self.damping < 1.0):
            raise MorphConfigError("integrator.damping must be in [0, 1)")


@dataclass
class TimingOptions(_OptionBlock):
    SECTION: ClassVar[str] = "timing"

    phase_frames: int = 300
    transition_frames: int = 0
    transition_rate: float = 0.05
    settled_rate: float = 0.02

    def __post_init__(self) -> None:
        if self.phase_frames <= 0:
            raise MorphConfigError("timing.phaseFrames must be positive")
        _check_rate(self.transition_rate, "timing.transitionRate")
        _check_rate(self.settled_rate, "timing.settledRate")


@dataclass
class RenderOptions(_OptionBlock):
    SECTION: ClassVar[str] = "render"

    base_size: float = 1.5
    large_ratio: float = 0.0
    large_size: float = 2.0
    alpha_scale: float = 0.7
    alpha_offset: float = 0.0
    shape: str = "circle"
    clear_color: str = "#020202"
    transparent: bool = False
    trails: bool = False
    trail_alpha: float = 0.25
    edges: bool = False
    edge_neighbors: int = 3
    edge_distance: float = 30.0
    edge_alpha: float = 0.15
    edge_color: str = "#ffffff"
    edge_stride: int = 1
    depth_sort: bool = True

    def __post_init__(self) -> None:
        if self.shape not in ("circle", "square"):
            raise MorphConfigError(f"unknown particle shape {self.shape!r}")
        self.edge_stride = max(1, self.edge_stride)
        self.edge_neighbors = max(0, self.edge_neighbors)
        # Validate colours early so a bad scene fails at load time.
        hex_to_rgb(self.clear_color)
        hex_to_rgb(self.edge_color)


@dataclass
class JitterOptions(_OptionBlock):
    SECTION: ClassVar[str] = "jitter"

    amplitude: float = 0.0
    frequency: float = 1.0


@dataclass
class SystemOptions(_OptionBlock):
    SECTION: ClassVar[str] = "system"

    particles: int = 400
    scatter: float = 600.0
    frame_interval_ms: int = 16
    dpr_clamp: float = 2.0
    pointer: bool = False

    def __post_init__(self) -> None:
        if self.particles <= 0:
            raise MorphConfigError("system.particles must be a positive integer")
        self.dpr_clamp = max(1.0, self.dpr_clamp)
