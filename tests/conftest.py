import os

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from morph.scenes import SceneDescriptor  # noqa: E402


@pytest.fixture(scope="session")
def qapp():
    from PyQt5 import QtWidgets

    app = QtWidgets.QApplication.instance() or QtWidgets.QApplication([])
    yield app


def make_scene(**overrides):
    """Small static scene; keyword arguments replace top-level scene entries."""
    data = dict(
        phases=[
            dict(name="sphere", shape="sphere", duration=5, params=dict(radius=100)),
            dict(name="cube", shape="cube", duration=5, style="square", params=dict(spacing=20)),
            dict(name="ring", shape="ring", duration=5, params=dict(radius=120)),
        ],
        palette=["#ff0000", "#00ff00"],
        system=dict(particles=64),
    )
    data.update(overrides)
    return SceneDescriptor.from_mapping("test", data)


@pytest.fixture
def scene():
    return make_scene()
