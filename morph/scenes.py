"""Scene descriptors and the library they are loaded from.

A scene bundles everything one visualisation needs: particle count, the phase
cycle and every option block.  Built-in scenes live in :data:`BUILTIN_SCENES`;
additional ones can be dropped as JSON files into a directory (``--scene-dir``
or the ``MORPH_SCENE_DIR`` environment variable).  A JSON scene uses the same
layout as a built-in entry, for example::

    {
      "label": "Orbit",
      "system": {"particles": 300, "pointer": true},
      "palette": ["#22d3ee", "#ffffff"],
      "phases": [
        {"shape": "sphere", "duration": 240, "params": {"radius_ratio": 0.3}},
        {"shape": "cube", "style": "square", "edgeColor": "#22d3ee", "params": {"spacing": 30}}
      ],
      "integrator": {"mode": "easing", "rate": 0.04}
    }
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

from .config import (
    DEFAULTS,
    CameraOptions,
    IntegratorOptions,
    JitterOptions,
    MorphConfigError,
    RenderOptions,
    SystemOptions,
    TimingOptions,
    hex_to_rgb,
    merge_config,
)
from .diagnostics import warn
from .phases import Phase, PhaseTiming

__all__ = [
    "SceneDescriptor",
    "SceneRegistry",
    "BUILTIN_SCENES",
    "DEFAULT_SCENE",
    "default_scene_dir",
    "get_scene_registry",
]

DEFAULT_SCENE = "download"


@dataclass
class SceneDescriptor:
    name: str
    label: str
    phases: Tuple[Phase, ...]
    palette: Tuple[str, ...]
    camera: CameraOptions
    integrator: IntegratorOptions
    timing: PhaseTiming
    render: RenderOptions
    jitter: JitterOptions
    system: SystemOptions
    source: Optional[Path] = None

    @property
    def particles(self) -> int:
        return self.system.particles

    @property
    def pointer_enabled(self) -> bool:
        return self.system.pointer

    @property
    def trails(self) -> bool:
        return self.render.trails

    @classmethod
    def from_mapping(cls, name: str, data: Mapping[str, Any], source: Optional[Path] = None) -> "SceneDescriptor":
        merged = merge_config(DEFAULTS, {k: v for k, v in data.items() if k in DEFAULTS})
        timing_options = TimingOptions.from_mapping(merged["timing"])
        raw_phases = data.get("phases") or [{"shape": "sphere"}]
        if not isinstance(raw_phases, (list, tuple)):
            raise MorphConfigError(f"scene {name!r}: 'phases' must be a list")
        phases = []
        for entry in raw_phases:
            if not isinstance(entry, Mapping):
                raise MorphConfigError(f"scene {name!r}: every phase must be an object")
            phases.append(Phase.from_mapping(entry, timing_options.phase_frames))
        palette = data.get("palette") or ("#ffffff",)
        for colour in palette:
            hex_to_rgb(colour)
        return cls(
            name=name,
            label=str(data.get("label", name.title())),
            phases=tuple(phases),
            palette=tuple(str(c) for c in palette),
            camera=CameraOptions.from_mapping(merged["camera"]),
            integrator=IntegratorOptions.from_mapping(merged["integrator"]),
            timing=PhaseTiming.from_options(timing_options),
            render=RenderOptions.from_mapping(merged["render"]),
            jitter=JitterOptions.from_mapping(merged["jitter"]),
            system=SystemOptions.from_mapping(merged["system"]),
            source=source,
        )


BUILTIN_SCENES: Dict[str, Dict[str, Any]] = {
    "trust": dict(
        label="Trust Center",
        palette=["#34d399", "#10b981", "#e5e7eb"],
        phases=[
            dict(name="ring", shape="ring", params=dict(radius_ratio=0.32, spread=18, thickness=12, tilt=20)),
            dict(name="cube", shape="cube", style="square", params=dict(spacing=32)),
            dict(name="shield", shape="shield", params=dict(width_ratio=0.45, height_ratio=0.55, depth=26)),
        ],
        camera=dict(focalLength=600, autoSpeed=0.25, wobbleAmp=0.1, wideBreakpoint=1024, wideCenterX=0.75),
        integrator=dict(rate=0.02),
        timing=dict(phaseFrames=600, transitionFrames=100, transitionRate=0.05, settledRate=0.02),
        render=dict(baseSize=1.6, edges=True, edgeStride=8, edgeNeighbors=3, edgeDistance=60, edgeColor="#34d399"),
        system=dict(particles=400),
    ),
    "philosophy": dict(
        label="Philosophy",
        palette=["#ffffff", "#ffffff", "#ffffff", "#739472"],
        phases=[
            dict(name="rings", shape="rings", params=dict(rings=5, radius=60, step=45)),
            dict(name="columns", shape="columns", params=dict(columns=9, radius=220, height=420)),
            dict(name="sphere", shape="sphere", params=dict(radius=240)),
        ],
        camera=dict(focalLength=900, autoSpeed=0.15, wobbleAmp=0.15),
        integrator=dict(rate=0.03, colorRate=0.03),
        timing=dict(phaseFrames=400),
        render=dict(baseSize=1.4, alphaScale=0.9, alphaOffset=0.1),
        system=dict(particles=550),
    ),
    "download": dict(
        label="Downloads",
        palette=["#8b5cf6", "#a78bfa", "#22d3ee", "#c4b5fd"],
        phases=[
            dict(name="cloud", shape="cloud", edges=False, params=dict(radius=220, tube=110)),
            dict(name="sphere", shape="sphere", edgeColor="#8b5cf6", edgeAlpha=0.1, params=dict(radius_ratio=0.35)),
            dict(name="cube", shape="cube", style="square", edgeColor="#22d3ee", edgeAlpha=0.15,
                 params=dict(spacing=34)),
        ],
        camera=dict(pointerSensitivity=0.1, pointerSmoothing=0.05, wobbleAmp=0.05),
        integrator=dict(rate=0.04),
        timing=dict(phaseFrames=360),
        render=dict(baseSize=1.2, largeRatio=0.1, largeSize=2.1, edges=True, edgeNeighbors=3, edgeDistance=30,
                    edgeColor="#a78bfa"),
        system=dict(particles=800, pointer=True),
    ),
    "compliance": dict(
        label="Compliance",
        palette=["#38bdf8", "#e0f2fe"],
        phases=[
            dict(name="cloud", shape="cloud", params=dict(radius=160, tube=120)),
            dict(name="ring", shape="ring", params=dict(radius=210, spread=12, turns=3)),
            dict(name="sphere", shape="sphere", params=dict(radius=200)),
        ],
        camera=dict(focalLength=600, autoSpeed=0.3),
        integrator=dict(rate=0.05),
        render=dict(trails=True, trailAlpha=0.25, edges=True, edgeNeighbors=2, edgeDistance=40),
        system=dict(particles=300),
    ),
    "signal": dict(
        label="Signal",
        palette=["#f59e0b", "#fde68a", "#ffffff"],
        phases=[
            dict(name="tower", shape="tower", params=dict(layers=10, width_ratio=0.25, depth_ratio=0.15,
                                                           height_ratio=0.5)),
            dict(name="prism", shape="prism", params=dict(radius=200, sides=6, bands=4)),
            dict(name="flow", shape="flow", params=dict(lanes=7, length=640, amplitude=26, speed=1.5)),
        ],
        camera=dict(pointerSensitivity=0.4, pointerSmoothing=0.08, autoSpeed=0.1),
        integrator=dict(mode="spring", stiffness=0.015, damping=0.88, colorRate=0.04),
        jitter=dict(amplitude=1.5, frequency=2.0),
        render=dict(baseSize=1.3),
        system=dict(particles=600, pointer=True),
    ),
}


def default_scene_dir() -> Optional[Path]:
    value = os.environ.get("MORPH_SCENE_DIR", "").strip()
    return Path(value) if value else None


class SceneRegistry:
    """Built-in scenes plus whatever JSON scenes a directory provides."""

    def __init__(self, directory: Optional[Path] = None, *, include_builtins: bool = True) -> None:
        self._directory = Path(directory) if directory is not None else None
        self._include_builtins = include_builtins
        self._scenes: Dict[str, SceneDescriptor] = {}
        self.reload()

    @property
    def directory(self) -> Optional[Path]:
        return self._directory

    def reload(self) -> None:
        scenes: Dict[str, SceneDescriptor] = {}
        if self._include_builtins:
            for name, data in BUILTIN_SCENES.items():
                scenes[name] = SceneDescriptor.from_mapping(name, data)
        if self._directory is not None and self._directory.is_dir():
            for path in sorted(self._directory.rglob("*.json")):
                scene = self._load_file(path)
                if scene is not None:
                    scenes[scene.name] = scene
        self._scenes = scenes

    @staticmethod
    def _load_file(path: Path) -> Optional[SceneDescriptor]:
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            warn(f"Skipping scene file {path}: {exc}")
            return None
        if not isinstance(payload, Mapping):
            warn(f"Skipping scene file {path}: top-level value must be an object")
            return None
        name = str(payload.get("name") or path.stem)
        try:
            return SceneDescriptor.from_mapping(name, payload, source=path)
        except (ValueError, TypeError) as exc:
            warn(f"Skipping scene file {path}: {exc}")
            return None

    def names(self) -> List[str]:
        return sorted(self._scenes)

    def get(self, name: str) -> SceneDescriptor:
        try:
            return self._scenes[name]
        except KeyError:
            raise KeyError(f"unknown scene {name!r}; available: {', '.join(self.names())}") from None

    def __contains__(self, name: object) -> bool:
        return name in self._scenes

    def __iter__(self) -> Iterator[SceneDescriptor]:
        for name in self.names():
            yield self._scenes[name]

    def __len__(self) -> int:
        return len(self._scenes)


_REGISTRY: Optional[SceneRegistry] = None


def get_scene_registry(directory: Optional[Path] = None) -> SceneRegistry:
    """Return the shared registry, rebuilding it when a directory is given."""

    global _REGISTRY
    if directory is not None or _REGISTRY is None:
        _REGISTRY = SceneRegistry(directory if directory is not None else default_scene_dir())
    return _REGISTRY
