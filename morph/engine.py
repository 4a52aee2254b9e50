"""Frame assembly: phases, motion, camera and projection in one tick.

:class:`MorphEngine` has no Qt dependency.  The host adapter feeds it the
surface size and pointer through :meth:`MorphEngine.resize` and
:meth:`MorphEngine.set_pointer`; :meth:`MorphEngine.step` then returns a
:class:`Frame` that any painter can draw.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from . import diagnostics
from .camera import Camera, InputState, depth_order, screen_origin
from .config import hex_to_rgb
from .integrator import ease_color, jitter_offset, make_integrator
from .particles import ParticleStore
from .phases import Phase, PhaseController
from .scenes import SceneDescriptor
from .shape_generators import get_generator, is_viewport_relative

__all__ = ["RenderItem", "Edge", "Frame", "MorphEngine"]

RGB = Tuple[float, float, float]


def clamp01(value: float) -> float:
    return max(0.0, min(1.0, value))


@dataclass
class RenderItem:
    """A particle projected on screen."""

    sx: float
    sy: float
    r: float
    color: RGB
    alpha: float
    depth: float
    scale: float
    index: int
    shape: str = "circle"


@dataclass
class Edge:
    x1: float
    y1: float
    x2: float
    y2: float
    alpha: float


@dataclass
class Frame:
    items: List[RenderItem] = field(default_factory=list)
    edges: List[Edge] = field(default_factory=list)
    phase_index: int = 0
    phase_name: str = ""
    width: int = 0
    height: int = 0
    edge_color: RGB = (1.0, 1.0, 1.0)

    @property
    def empty(self) -> bool:
        return not self.items


class MorphEngine:
    """Owns the particle population and advances it one frame per :meth:`step`."""

    def __init__(self, scene: SceneDescriptor) -> None:
        self.scene = scene
        render = scene.render
        base_color = hex_to_rgb(scene.palette[0]) if scene.palette else (1.0, 1.0, 1.0)
        self.store = ParticleStore(
            scene.particles,
            spread=scene.system.scatter,
            color=base_color,
            large_ratio=render.large_ratio,
            large_size=render.large_size,
        )
        self.phases = PhaseController(scene.phases, scene.timing)
        self.integrator = make_integrator(scene.integrator)
        self.camera = Camera(scene.camera, pointer_enabled=scene.pointer_enabled)
        self.input = InputState()
        self._viewport_min = 0
        self._targets_dirty = True
        self._frame_count = 0
        self._last_summary = ""

    # ------------------------------------------------------------------ helpers
    def _debug(self, message: str) -> None:
        diagnostics.debug(message)

    @property
    def frame_count(self) -> int:
        return self._frame_count

    @property
    def viewport(self) -> Tuple[int, int]:
        return self.input.width, self.input.height

    # ------------------------------------------------------------------ input
    def resize(self, width: int, height: int) -> None:
        """Record the surface size in CSS-like (unscaled) pixels.

        Calling it again with the same size does nothing.  When the smaller
        side changes, phases whose shape is sized relative to the viewport get
        fresh targets on the next tick.
        """

        width = max(0, int(width))
        height = max(0, int(height))
        self.input.width = width
        self.input.height = height
        min_side = min(width, height)
        if min_side > 0 and min_side != self._viewport_min:
            self._viewport_min = min_side
            if is_viewport_relative(self.phases.current.params):
                self._targets_dirty = True

    def set_pointer(self, x: float, y: float) -> None:
        self.input.set_pointer(x, y)

    def force_phase(self, index: int) -> None:
        """Request a phase; it is applied at the start of the next tick."""

        self.input.forced_phase = int(index)

    def reset(self) -> None:
        self.store.scatter(self.scene.system.scatter)
        self.phases.reset()
        self.camera.reset()
        self._targets_dirty = True
        self._frame_count = 0
        self._last_summary = ""

    # ------------------------------------------------------------------ targets
    def _phase_params(self, phase: Phase) -> dict:
        params = dict(phase.params)
        params["viewport"] = float(self._viewport_min)
        params["time"] = self.camera.time
        return params

    def regenerate_targets(self) -> None:
        phase = self.phases.current
        generator = get_generator(phase.shape)
        params = self._phase_params(phase)
        total = len(self.store)
        samples = [generator(index, total, params) for index in range(total)]
        self.store.retarget(samples, phase.palette or self.scene.palette)
        self._targets_dirty = False

    # ------------------------------------------------------------------ tick
    def step(self, width: Optional[int] = None, height: Optional[int] = None) -> Frame:
        if width is not None and height is not None:
            self.resize(width, height)
        if self.input.width <= 0 or self.input.height <= 0:
            # pending input, including a forced phase, waits for a drawable surface
            return Frame(phase_index=self.phases.index, phase_name=self.phases.current.name)
        state = self.input.snapshot()
        w, h = state.width, state.height

        if state.forced_phase is not None:
            self.phases.force(state.forced_phase)
            self._targets_dirty = True
        elif self.phases.advance():
            self._targets_dirty = True
        phase = self.phases.current

        self.camera.advance((state.pointer_x, state.pointer_y))
        if self._targets_dirty or phase.dynamic:
            self.regenerate_targets()

        rate = self.phases.easing_rate(self.scene.integrator.rate)
        color_rate = self.scene.integrator.color_rate
        for particle in self.store:
            self.integrator.step(particle, rate)
            ease_color(particle, color_rate)

        items, edges = self._project(w, h, phase)
        self._frame_count += 1
        self._report(items, w, h)
        edge_color = hex_to_rgb(phase.edge_color or self.scene.render.edge_color)
        return Frame(items, edges, self.phases.index, phase.name, w, h, edge_color)

    def _project(self, width: int, height: int, phase: Phase) -> Tuple[List[RenderItem], List[Edge]]:
        render = self.scene.render
        jitter = self.scene.jitter
        origin = screen_origin(width, height, self.camera.options)
        shape = phase.style or render.shape
        time = self.camera.time
        slots: List[Optional[RenderItem]] = []
        items: List[RenderItem] = []
        for particle in self.store:
            pos = particle.position
            x, y, z = pos.x, pos.y, pos.z
            if jitter.amplitude:
                offset = jitter_offset(particle.index, time, jitter.amplitude, jitter.frequency)
                x += offset.x
                y += offset.y
                z += offset.z
            projected = self.camera.project(x, y, z, origin)
            if projected is None:
                slots.append(None)
                continue
            scale = projected.scale
            item = RenderItem(
                sx=projected.sx,
                sy=projected.sy,
                r=particle.size * render.base_size * scale,
                color=particle.color,
                alpha=clamp01(scale * render.alpha_scale - render.alpha_offset),
                depth=projected.depth,
                scale=scale,
                index=particle.index,
                shape=shape,
            )
            slots.append(item)
            items.append(item)

        show_edges = render.edges if phase.edges is None else phase.edges
        edge_alpha = render.edge_alpha if phase.edge_alpha is None else phase.edge_alpha
        edges = self._edges(slots, edge_alpha) if show_edges else []
        if render.depth_sort:
            order = depth_order([it.depth for it in items])
            items = [items[i] for i in order]
        return items, edges

    def _edges(self, slots: List[Optional[RenderItem]], edge_alpha: float) -> List[Edge]:
        render = self.scene.render
        edges: List[Edge] = []
        count = len(slots)
        for i in range(0, count, render.edge_stride):
            a = slots[i]
            if a is None:
                continue
            for j in range(1, render.edge_neighbors + 1):
                if i + j >= count:
                    break
                b = slots[i + j]
                if b is None:
                    continue
                avg_scale = (a.scale + b.scale) / 2.0
                if math.hypot(a.sx - b.sx, a.sy - b.sy) >= render.edge_distance * avg_scale:
                    continue
                alpha = clamp01(edge_alpha * avg_scale)
                if alpha > 0.0:
                    edges.append(Edge(a.sx, a.sy, b.sx, b.sy, alpha))
        return edges

    def _report(self, items: List[RenderItem], width: int, height: int) -> None:
        count = len(items)
        if count:
            min_x = min(it.sx for it in items)
            max_x = max(it.sx for it in items)
            min_y = min(it.sy for it in items)
            max_y = max(it.sy for it in items)
            bounds = f"x=[{min_x:.0f},{max_x:.0f}] y=[{min_y:.0f},{max_y:.0f}]"
        else:
            bounds = "none"
        # Bounds move every frame so they are logged but not compared.
        summary = f"{count}|{self.phases.index}|{width}x{height}"
        if summary == self._last_summary:
            return
        self._debug(
            "step rendered %d of %d particles (phase=%s width=%d height=%d screen=%s)"
            % (count, len(self.store), self.phases.current.name, width, height, bounds)
        )
        self._last_summary = summary
