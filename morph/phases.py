"""Cyclic phase sequencing."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

from .config import MorphConfigError, TimingOptions, _check_rate, _coerce_bool, _coerce_float, hex_to_rgb
from .shape_generators import DYNAMIC_SHAPES, canonical_shape, get_generator

__all__ = ["Phase", "PhaseTiming", "PhaseController"]


@dataclass
class Phase:
    """One segment of the cycle: a target shape held for ``duration`` frames.

    ``style``, ``edges``, ``edge_color`` and ``edge_alpha`` override the
    scene's render options while the phase is active; ``None`` keeps them.
    """

    name: str
    shape: str
    duration: int = 300
    params: Dict[str, Any] = field(default_factory=dict)
    palette: Tuple[str, ...] = ()
    style: Optional[str] = None
    dynamic: bool = False
    edges: Optional[bool] = None
    edge_color: Optional[str] = None
    edge_alpha: Optional[float] = None

    def __post_init__(self) -> None:
        self.shape = canonical_shape(self.shape)
        self.duration = int(self.duration)
        if self.duration <= 0:
            raise MorphConfigError(f"phase {self.name!r} needs a positive duration")
        get_generator(self.shape)
        self.palette = tuple(self.palette)
        for colour in self.palette:
            hex_to_rgb(colour)
        if self.style not in (None, "circle", "square"):
            raise MorphConfigError(f"phase {self.name!r} has unknown style {self.style!r}")
        if self.edge_color is not None:
            hex_to_rgb(self.edge_color)
        if self.edge_alpha is not None and not (0.0 <= self.edge_alpha <= 1.0):
            raise MorphConfigError(f"phase {self.name!r} edge alpha must be in [0, 1]")
        if self.shape in DYNAMIC_SHAPES:
            self.dynamic = True

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], default_duration: int = 300) -> "Phase":
        shape = str(data.get("shape", "sphere"))
        return cls(
            name=str(data.get("name", shape)),
            shape=shape,
            duration=int(_coerce_float(data.get("duration"), default_duration)),
            params=dict(data.get("params") or {}),
            palette=tuple(data.get("palette") or ()),
            style=data.get("style"),
            dynamic=bool(data.get("dynamic", False)),
            edges=None if data.get("edges") is None else _coerce_bool(data.get("edges")),
            edge_color=data.get("edgeColor"),
            edge_alpha=None if data.get("edgeAlpha") is None else _coerce_float(data.get("edgeAlpha")),
        )


@dataclass
class PhaseTiming:
    """Easing window applied right after a phase change.

    During the first ``transition_frames`` frames of a phase the integrator
    uses ``transition_rate``; afterwards it uses ``settled_rate``.
    """

    transition_frames: int = 0
    transition_rate: float = 0.05
    settled_rate: float = 0.02

    def __post_init__(self) -> None:
        self.transition_frames = max(0, int(self.transition_frames))
        _check_rate(self.transition_rate, "transition rate")
        _check_rate(self.settled_rate, "settled rate")

    @classmethod
    def from_options(cls, options: TimingOptions) -> "PhaseTiming":
        return cls(
            transition_frames=options.transition_frames,
            transition_rate=options.transition_rate,
            settled_rate=options.settled_rate,
        )


class PhaseController:
    def __init__(self, phases: Sequence[Phase], timing: Optional[PhaseTiming] = None, start: int = 0) -> None:
        if not phases:
            raise MorphConfigError("at least one phase is required")
        self._phases: Tuple[Phase, ...] = tuple(phases)
        self._timing = timing
        self._start = start % len(self._phases)
        self._index = self._start
        self._elapsed = 0

    @property
    def phases(self) -> Tuple[Phase, ...]:
        return self._phases

    @property
    def index(self) -> int:
        return self._index

    @property
    def current(self) -> Phase:
        return self._phases[self._index]

    @property
    def elapsed(self) -> int:
        return self._elapsed

    def __len__(self) -> int:
        return len(self._phases)

    def advance(self, frames: int = 1) -> bool:
        """Count ``frames`` frames and report whether the phase changed."""

        changed = False
        for _ in range(max(0, frames)):
            self._elapsed += 1
            if self._elapsed >= self.current.duration:
                self._index = (self._index + 1) % len(self._phases)
                self._elapsed = 0
                changed = True
        return changed

    def force(self, index: int) -> None:
        self._index = int(index) % len(self._phases)
        self._elapsed = 0

    def reset(self) -> None:
        self.force(self._start)

    def easing_rate(self, default: float) -> float:
        timing = self._timing
        if timing is None or timing.transition_frames <= 0:
            return default
        if self._elapsed < timing.transition_frames:
            return timing.transition_rate
        return timing.settled_rate
