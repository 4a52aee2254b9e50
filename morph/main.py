# -*- coding: utf-8 -*-
"""Command line entry point: open a scene in a window or capture it headless."""

from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path
from typing import List, NoReturn, Optional, Sequence, Tuple

from .config import DEFAULTS, TOOLTIPS
from .diagnostics import install_debug_silencer, warn
from .scenes import DEFAULT_SCENE, SceneRegistry, get_scene_registry


def _handle_qt_import_error(exc: ImportError) -> NoReturn:
    """Exit with a helpful message when the Qt bindings cannot be imported."""

    message_lines = [
        "Unable to start the morph viewer: importing PyQt5 failed.",
        "Check that PyQt5 is installed for this interpreter.",
    ]
    if "libGL.so.1" in str(exc):
        message_lines.append("Hint: the system library libGL.so.1 is missing; install the Mesa/OpenGL packages.")
    message_lines.append(f"Original error: {exc}")
    raise SystemExit("\n".join(message_lines)) from exc


def _parse_size(text: str) -> Tuple[int, int]:
    try:
        width, height = (int(part) for part in text.lower().split("x", 1))
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected WIDTHxHEIGHT, got {text!r}") from None
    if width < 0 or height < 0:
        raise argparse.ArgumentTypeError("size must not be negative")
    return width, height


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="particle-morph", description=__doc__)
    parser.add_argument("--scene", default=DEFAULT_SCENE, help="scene to display (default: %(default)s)")
    parser.add_argument("--scene-dir", type=Path, default=None, help="directory with extra JSON scenes")
    parser.add_argument("--list", action="store_true", help="list the available scenes and exit")
    parser.add_argument("--describe-config", action="store_true", help="print every option with its default")
    parser.add_argument("--size", type=_parse_size, default=(1280, 720), help="surface size, e.g. 800x600")
    parser.add_argument("--capture", type=Path, default=None, help="render headless and write PNG files here")
    parser.add_argument("--frames", type=int, default=120, help="frames to render when capturing")
    parser.add_argument("--every", type=int, default=30, help="save one PNG every N captured frames")
    parser.add_argument("--verbose", action="store_true", help="keep engine debug lines on the console")
    return parser


def describe_config() -> List[str]:
    lines = []
    for section, values in DEFAULTS.items():
        for key, value in values.items():
            name = f"{section}.{key}"
            lines.append(f"{name} = {value!r}  # {TOOLTIPS.get(name, '')}".rstrip(" #"))
    return lines


def capture(scene, out_dir: Path, size: Tuple[int, int], frames: int, every: int) -> List[Path]:
    """Render ``frames`` frames off-screen and save every ``every``-th one."""

    os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
    try:
        from PyQt5 import QtGui
    except ImportError as exc:  # pragma: no cover - environment dependent
        _handle_qt_import_error(exc)
    from .engine import MorphEngine
    from .view import render_frame_to_image

    app = QtGui.QGuiApplication.instance() or QtGui.QGuiApplication([sys.argv[0]])
    out_dir.mkdir(parents=True, exist_ok=True)
    engine = MorphEngine(scene)
    width, height = size
    every = max(1, every)
    image = None
    written: List[Path] = []
    for index in range(1, max(1, frames) + 1):
        image = render_frame_to_image(engine, width, height, image=image)
        if index % every == 0 or index == frames:
            path = out_dir / f"{scene.name}_{index:05d}.png"
            if not image.save(str(path)):
                warn(f"Could not write {path}")
                continue
            written.append(path)
    return written


def _run_window(scene, size: Tuple[int, int]) -> int:
    try:
        from PyQt5 import QtCore, QtWidgets
    except ImportError as exc:  # pragma: no cover - environment dependent
        _handle_qt_import_error(exc)
    from .view import MorphViewWidget

    class ViewWindow(QtWidgets.QMainWindow):
        """Main window; number keys force a phase, space restarts the cycle."""

        def __init__(self) -> None:
            super().__init__(None)
            self.setWindowTitle(f"Particle Morph - {scene.label}")
            self.view = MorphViewWidget(scene, self)
            self.setCentralWidget(self.view)
            self.resize(*size)

        def keyPressEvent(self, event) -> None:  # type: ignore[override]
            key = event.key()
            if QtCore.Qt.Key_1 <= key <= QtCore.Qt.Key_9:
                self.view.force_phase(key - QtCore.Qt.Key_1)
                return
            if key == QtCore.Qt.Key_Space:
                self.view.engine.reset()
                return
            if key == QtCore.Qt.Key_Escape:
                self.close()
                return
            super().keyPressEvent(event)

    QtWidgets.QApplication.setAttribute(QtCore.Qt.AA_EnableHighDpiScaling, True)
    QtWidgets.QApplication.setAttribute(QtCore.Qt.AA_UseHighDpiPixmaps, True)
    app = QtWidgets.QApplication.instance() or QtWidgets.QApplication(sys.argv)
    window = ViewWindow()
    window.show()
    return app.exec_()


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    if not args.verbose and os.environ.get("MORPH_DEBUG", "").strip().lower() not in {"1", "true", "yes"}:
        install_debug_silencer()

    registry = SceneRegistry(args.scene_dir) if args.scene_dir is not None else get_scene_registry()

    if args.list:
        for scene in registry:
            phases = ", ".join(phase.name for phase in scene.phases)
            print(f"{scene.name:<12} {scene.label} ({scene.particles} particles: {phases})")
        return 0
    if args.describe_config:
        print("\n".join(describe_config()))
        return 0

    try:
        scene = registry.get(args.scene)
    except KeyError as exc:
        print(exc.args[0], file=sys.stderr)
        return 2

    if args.capture is not None:
        written = capture(scene, args.capture, args.size, args.frames, args.every)
        print(f"wrote {len(written)} frame(s) to {args.capture}")
        return 0 if written else 1
    return _run_window(scene, args.size)


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    sys.exit(main())
