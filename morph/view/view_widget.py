"""Qt host for the morph engine.

The widget owns an off-screen ``QImage`` surface.  Every tick of its
:class:`AnimationLoop` steps the engine, paints the frame onto that surface and
asks Qt for a repaint; ``paintEvent`` only blits the surface.  Keeping the
surface between frames is what lets the translucent clear of trail scenes
leave fading streaks behind moving particles.

Only a handful of entry points drive the engine:

* :meth:`_MorphRasterWidget.start` / :meth:`_MorphRasterWidget.stop`, also
  triggered by show, hide and close events.
* :meth:`_MorphRasterWidget.on_resize`, fed by ``resizeEvent``.
* :meth:`_MorphRasterWidget.on_pointer_move`, fed by ``mouseMoveEvent`` with
  coordinates normalised to ``[-1, 1]``.
"""

from __future__ import annotations

import os
from typing import Callable, Optional

from PyQt5 import QtCore, QtGui, QtWidgets

from ..config import RenderOptions, hex_to_rgb
from ..diagnostics import warn
from ..engine import Frame, MorphEngine
from ..scenes import DEFAULT_SCENE, SceneDescriptor, get_scene_registry

__all__ = ["ParticleRenderer", "AnimationLoop", "MorphViewWidget", "render_frame_to_image"]


def _qcolor(rgb, alpha: float = 1.0) -> QtGui.QColor:
    color = QtGui.QColor.fromRgbF(
        max(0.0, min(1.0, rgb[0])),
        max(0.0, min(1.0, rgb[1])),
        max(0.0, min(1.0, rgb[2])),
    )
    color.setAlphaF(max(0.0, min(1.0, alpha)))
    return color


class ParticleRenderer:
    """Draws :class:`~morph.engine.Frame` objects with a ``QPainter``."""

    def __init__(self, options: RenderOptions) -> None:
        self.options = options
        self._clear_rgb = hex_to_rgb(options.clear_color)

    def clear(self, painter: QtGui.QPainter, width: float, height: float) -> None:
        rect = QtCore.QRectF(0.0, 0.0, width, height)
        opts = self.options
        if opts.transparent:
            painter.setCompositionMode(QtGui.QPainter.CompositionMode_Source)
            painter.fillRect(rect, QtCore.Qt.transparent)
            painter.setCompositionMode(QtGui.QPainter.CompositionMode_SourceOver)
        elif opts.trails:
            painter.fillRect(rect, _qcolor(self._clear_rgb, opts.trail_alpha))
        else:
            painter.fillRect(rect, _qcolor(self._clear_rgb))

    def draw(self, painter: QtGui.QPainter, frame: Frame) -> None:
        painter.setRenderHint(QtGui.QPainter.Antialiasing, True)
        if frame.edges:
            pen = QtGui.QPen()
            pen.setWidthF(0.5)
            painter.setBrush(QtCore.Qt.NoBrush)
            for edge in frame.edges:
                pen.setColor(_qcolor(frame.edge_color, edge.alpha))
                painter.setPen(pen)
                painter.drawLine(QtCore.QPointF(edge.x1, edge.y1), QtCore.QPointF(edge.x2, edge.y2))
        painter.setPen(QtCore.Qt.NoPen)
        for item in frame.items:
            if item.alpha <= 0.0 or item.r <= 0.0:
                continue
            painter.setBrush(_qcolor(item.color, item.alpha))
            if item.shape == "square":
                painter.drawRect(QtCore.QRectF(item.sx - item.r, item.sy - item.r, item.r * 2, item.r * 2))
            else:
                painter.drawEllipse(QtCore.QRectF(item.sx - item.r, item.sy - item.r, item.r * 2, item.r * 2))

    def paint(self, painter: QtGui.QPainter, frame: Frame) -> bool:
        """Clear and draw; returns ``False`` without drawing when the painter is unusable."""

        if not painter.isActive():
            return False
        self.clear(painter, frame.width, frame.height)
        self.draw(painter, frame)
        return True


class AnimationLoop(QtCore.QObject):
    """Self-rescheduling frame loop that can be cancelled at any time.

    Each :meth:`start` opens a new generation; a pending timeout that belongs
    to an older generation is ignored, so a callback never runs after
    :meth:`cancel` even if the timer already fired.
    """

    def __init__(
        self,
        callback: Callable[[], None],
        interval_ms: int = 16,
        parent: Optional[QtCore.QObject] = None,
    ) -> None:
        super().__init__(parent)
        self._callback = callback
        self._interval_ms = max(0, int(interval_ms))
        self._generation = 0
        self._scheduled = -1
        self._active = False
        self._timer = QtCore.QTimer(self)
        self._timer.setSingleShot(True)
        self._timer.timeout.connect(self._fire)

    @property
    def active(self) -> bool:
        return self._active

    @property
    def generation(self) -> int:
        return self._generation

    def start(self) -> None:
        if self._active:
            return
        self._generation += 1
        self._active = True
        self._schedule()

    def cancel(self) -> None:
        self._active = False
        self._generation += 1
        self._timer.stop()

    def _schedule(self) -> None:
        self._scheduled = self._generation
        self._timer.start(self._interval_ms)

    def _fire(self) -> None:
        token = self._scheduled
        if not self._active or token != self._generation:
            return
        self._callback()
        if self._active and token == self._generation:
            self._schedule()


class _MorphRasterWidget(QtWidgets.QWidget):
    """Widget adapter binding a :class:`MorphEngine` to a Qt surface."""

    def __init__(
        self,
        scene: SceneDescriptor,
        parent: Optional[QtWidgets.QWidget] = None,
        *,
        frame_interval_ms: Optional[int] = None,
    ) -> None:
        super().__init__(parent)
        self.setAttribute(QtCore.Qt.WA_OpaquePaintEvent, not scene.render.transparent)
        self.setMouseTracking(True)
        self.scene = scene
        self.engine = MorphEngine(scene)
        self.renderer = ParticleRenderer(scene.render)
        interval = scene.system.frame_interval_ms if frame_interval_ms is None else frame_interval_ms
        self._loop = AnimationLoop(self._tick, interval, self)
        self._surface: Optional[QtGui.QImage] = None
        self._failed = False
        self.last_frame: Optional[Frame] = None

    # ------------------------------------------------------------------ API
    @property
    def running(self) -> bool:
        return self._loop.active

    @property
    def surface(self) -> Optional[QtGui.QImage]:
        return self._surface

    def start(self) -> None:
        if self._failed or self._loop.active:
            return
        if self._surface is None:
            self.on_resize(self.width(), self.height())
        self._loop.start()

    def stop(self) -> None:
        self._loop.cancel()
        self._surface = None

    def on_resize(self, width: int, height: int) -> None:
        dpr = max(1.0, min(float(self.devicePixelRatioF()), self.scene.system.dpr_clamp))
        self.engine.resize(width, height)
        if width <= 0 or height <= 0:
            self._surface = None
            return
        size = QtCore.QSize(int(round(width * dpr)), int(round(height * dpr)))
        if self._surface is not None and self._surface.size() == size:
            return
        surface = QtGui.QImage(size, QtGui.QImage.Format_ARGB32_Premultiplied)
        if surface.isNull():
            # allocation failed; keep drawing nothing until the next resize
            self._surface = None
            return
        surface.setDevicePixelRatio(dpr)
        if self.scene.render.transparent:
            surface.fill(QtCore.Qt.transparent)
        else:
            surface.fill(_qcolor(hex_to_rgb(self.scene.render.clear_color)))
        self._surface = surface

    def on_pointer_move(self, x: float, y: float) -> None:
        self.engine.set_pointer(x, y)

    def force_phase(self, index: int) -> None:
        self.engine.force_phase(index)

    def render_frame(self) -> Optional[Frame]:
        """Step the engine once and paint onto the surface.

        Returns ``None`` while the widget has no drawable area.
        """

        if self._surface is None:
            return None
        frame = self.engine.step()
        painter = QtGui.QPainter(self._surface)
        try:
            self.renderer.paint(painter, frame)
        finally:
            if painter.isActive():
                painter.end()
        self.last_frame = frame
        return frame

    def _tick(self) -> None:
        try:
            self.render_frame()
        except Exception as exc:
            self._failed = True
            self.stop()
            warn(f"Animation stopped after an error in frame {self.engine.frame_count}: {exc!r}")
            return
        self.update()

    # ------------------------------------------------------------------ Qt events
    def paintEvent(self, event: QtGui.QPaintEvent) -> None:  # type: ignore[override]
        del event
        painter = QtGui.QPainter(self)
        try:
            if not painter.isActive():
                return
            if self._surface is not None:
                painter.drawImage(QtCore.QPointF(0.0, 0.0), self._surface)
            elif not self.scene.render.transparent:
                painter.fillRect(self.rect(), _qcolor(hex_to_rgb(self.scene.render.clear_color)))
        finally:
            if painter.isActive():
                painter.end()

    def resizeEvent(self, event: QtGui.QResizeEvent) -> None:  # type: ignore[override]
        super().resizeEvent(event)
        self.on_resize(event.size().width(), event.size().height())
        self.update()

    def mouseMoveEvent(self, event: QtGui.QMouseEvent) -> None:  # type: ignore[override]
        width = self.width()
        height = self.height()
        if width > 0 and height > 0:
            pos = event.pos()
            self.on_pointer_move(pos.x() / width * 2.0 - 1.0, pos.y() / height * 2.0 - 1.0)
        super().mouseMoveEvent(event)

    def showEvent(self, event: QtGui.QShowEvent) -> None:  # type: ignore[override]
        super().showEvent(event)
        self.start()

    def hideEvent(self, event: QtGui.QHideEvent) -> None:  # type: ignore[override]
        self.stop()
        super().hideEvent(event)

    def closeEvent(self, event: QtGui.QCloseEvent) -> None:  # type: ignore[override]
        self.stop()
        super().closeEvent(event)


def _frame_interval_from_env() -> Optional[int]:
    value = os.environ.get("MORPH_FRAME_INTERVAL", "").strip()
    if not value:
        return None
    try:
        return max(0, int(float(value)))
    except ValueError:
        warn(f"Ignoring MORPH_FRAME_INTERVAL={value!r}: not a number")
        return None


def MorphViewWidget(
    scene: Optional[SceneDescriptor] = None,
    parent: Optional[QtWidgets.QWidget] = None,
    *,
    frame_interval_ms: Optional[int] = None,
) -> QtWidgets.QWidget:
    """Factory returning the view widget for ``scene``.

    Parameters
    ----------
    scene:
        Scene to animate.  Defaults to the registry's default scene.
    parent:
        Parent widget used by Qt for ownership.
    frame_interval_ms:
        Delay between frames.  Falls back to ``MORPH_FRAME_INTERVAL`` and then
        to the scene's ``system.frameIntervalMs``.

    Returns
    -------
    QtWidgets.QWidget
        A widget exposing ``start``, ``stop``, ``on_resize``,
        ``on_pointer_move`` and ``force_phase``.
    """

    if scene is None:
        scene = get_scene_registry().get(DEFAULT_SCENE)
    if frame_interval_ms is None:
        frame_interval_ms = _frame_interval_from_env()
    return _MorphRasterWidget(scene, parent, frame_interval_ms=frame_interval_ms)


def render_frame_to_image(
    engine: MorphEngine,
    width: int,
    height: int,
    *,
    frames: int = 1,
    image: Optional[QtGui.QImage] = None,
) -> QtGui.QImage:
    """Step ``engine`` ``frames`` times off-screen and return the painted image.

    Passing the previous ``image`` back in keeps trail scenes accumulating.
    """

    renderer = ParticleRenderer(engine.scene.render)
    engine.resize(width, height)
    if image is None or image.width() != width or image.height() != height:
        image = QtGui.QImage(max(1, width), max(1, height), QtGui.QImage.Format_ARGB32_Premultiplied)
        image.fill(_qcolor(hex_to_rgb(engine.scene.render.clear_color)))
    for _ in range(max(1, frames)):
        frame = engine.step()
        painter = QtGui.QPainter(image)
        try:
            renderer.paint(painter, frame)
        finally:
            if painter.isActive():
                painter.end()
    return image
