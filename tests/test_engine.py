"""Tests for the frame loop of :class:`MorphEngine`."""
import math

import pytest

from conftest import make_scene
from morph.engine import MorphEngine
from morph.shape_generators import generate_targets


def test_zero_size_defers_then_resize_renders():
    engine = MorphEngine(make_scene())
    frame = engine.step(0, 0)
    assert frame.empty
    assert frame.edges == []
    assert engine.frame_count == 0

    engine.resize(800, 600)
    frame = engine.step()
    assert not frame.empty
    assert (frame.width, frame.height) == (800, 600)
    assert engine.frame_count == 1
    for item in frame.items:
        assert math.isfinite(item.sx) and math.isfinite(item.sy)
        assert 0.0 <= item.alpha <= 1.0
        assert item.r > 0.0


def test_settled_particles_stay_within_new_bounds():
    scene = make_scene(phases=[dict(shape="sphere", duration=1000, params=dict(radius_ratio=0.25))])
    engine = MorphEngine(scene)
    engine.step(0, 0)
    engine.resize(800, 600)
    for _ in range(150):
        frame = engine.step()
    assert len(frame.items) == 64
    for item in frame.items:
        assert 0.0 <= item.sx <= 800.0
        assert 0.0 <= item.sy <= 600.0


def test_zero_width_with_height_is_still_deferred():
    engine = MorphEngine(make_scene())
    assert engine.step(0, 600).empty
    assert engine.step(800, 0).empty
    assert engine.phases.elapsed == 0


def test_particle_count_never_changes():
    engine = MorphEngine(make_scene())
    engine.resize(640, 480)
    for frame_index in range(40):
        if frame_index == 7:
            engine.force_phase(2)
        engine.step()
        assert len(engine.store) == 64


def test_phase_cycle_returns_to_start():
    engine = MorphEngine(make_scene())
    engine.resize(640, 480)
    seen = []
    for _ in range(15):
        seen.append(engine.step().phase_name)
    assert engine.phases.index == 0
    assert seen[:4] == ["sphere"] * 4
    assert seen[4:9] == ["cube"] * 5
    assert seen[9:14] == ["ring"] * 5
    assert seen[14] == "sphere"


def test_force_phase_applies_on_next_tick_and_retargets():
    engine = MorphEngine(make_scene())
    engine.resize(640, 480)
    engine.step()
    engine.force_phase(1)
    assert engine.phases.index == 0
    frame = engine.step()
    assert frame.phase_index == 1
    assert engine.phases.elapsed == 0
    expected = generate_targets("cube", 64, {"spacing": 20})
    assert engine.store[10].target.as_tuple() == pytest.approx(expected[10].position.as_tuple())
    assert all(item.shape == "square" for item in frame.items)


def test_forced_phase_survives_zero_size_tick():
    engine = MorphEngine(make_scene())
    engine.force_phase(2)
    assert engine.step(0, 0).empty
    assert engine.input.forced_phase == 2
    frame = engine.step(640, 480)
    assert frame.phase_index == 2
    assert frame.phase_name == "ring"


def test_items_are_sorted_back_to_front():
    engine = MorphEngine(make_scene())
    engine.resize(640, 480)
    for _ in range(3):
        frame = engine.step()
    depths = [item.depth for item in frame.items]
    assert depths == sorted(depths, reverse=True)


def test_resize_regenerates_viewport_relative_targets():
    scene = make_scene(phases=[dict(shape="sphere", duration=1000, params=dict(radius_ratio=0.25))])
    engine = MorphEngine(scene)
    engine.step(400, 400)
    assert engine.store[0].target.y == pytest.approx(100.0)

    engine.step(800, 1000)
    assert engine.store[0].target.y == pytest.approx(200.0)

    # same smaller side: targets stay put
    engine.store[0].target.y = 1.0
    engine.step(900, 800)
    assert engine.store[0].target.y == 1.0


def test_jitter_never_accumulates_into_positions():
    scene = make_scene(
        phases=[dict(shape="sphere", duration=1000, params=dict(radius=100))],
        jitter=dict(amplitude=5.0, frequency=3.0),
    )
    engine = MorphEngine(scene)
    engine.step(640, 480)
    for particle in engine.store:
        particle.position = particle.target.copy()
    for _ in range(20):
        engine.step()
    for particle in engine.store:
        assert particle.position.as_tuple() == particle.target.as_tuple()


def test_colours_ease_towards_palette():
    scene = make_scene(
        palette=["#ffffff"],
        phases=[dict(shape="sphere", duration=1000, palette=["#0000ff"])],
    )
    engine = MorphEngine(scene)
    engine.resize(320, 240)
    assert engine.store[0].color == (1.0, 1.0, 1.0)
    engine.step()
    assert engine.store[0].color[0] == pytest.approx(0.95)
    for _ in range(200):
        engine.step()
    assert engine.store[0].color == pytest.approx((0.0, 0.0, 1.0), abs=1e-3)


def test_edges_connect_close_neighbours():
    scene = make_scene(render=dict(edges=True, edgeNeighbors=2, edgeDistance=10000.0, edgeAlpha=0.5))
    engine = MorphEngine(scene)
    frame = engine.step(640, 480)
    assert frame.edges
    assert all(0.0 < edge.alpha <= 1.0 for edge in frame.edges)
    assert len(frame.edges) <= 64 * 2


def test_no_edges_when_disabled():
    engine = MorphEngine(make_scene())
    assert engine.step(640, 480).edges == []


def test_dynamic_shape_retargets_every_frame():
    scene = make_scene(phases=[dict(shape="flow", duration=1000, params=dict(lanes=4, speed=2.0))])
    engine = MorphEngine(scene)
    engine.step(640, 480)
    before = engine.store[3].target.as_tuple()
    engine.step()
    assert engine.store[3].target.as_tuple() != before


def test_reset_restarts_cycle_and_camera():
    engine = MorphEngine(make_scene())
    engine.resize(640, 480)
    for _ in range(7):
        engine.step()
    engine.reset()
    assert engine.phases.index == 0
    assert engine.camera.time == 0.0
    assert engine.frame_count == 0


def test_pointer_moves_camera_only_when_enabled():
    engine = MorphEngine(make_scene(system=dict(particles=8, pointer=True)))
    engine.set_pointer(1.0, 0.0)
    engine.step(200, 200)
    with_pointer = engine.camera.yaw

    other = MorphEngine(make_scene(system=dict(particles=8)))
    other.set_pointer(1.0, 0.0)
    other.step(200, 200)
    assert with_pointer > other.camera.yaw


def test_phase_edge_overrides_replace_scene_settings():
    scene = make_scene(
        render=dict(edges=True, edgeNeighbors=2, edgeDistance=10000.0, edgeAlpha=0.5, edgeColor="#ffffff"),
        phases=[
            dict(name="dots", shape="sphere", duration=2, edges=False),
            dict(name="mesh", shape="sphere", duration=2, edgeColor="#22d3ee", edgeAlpha=0.25),
        ],
    )
    engine = MorphEngine(scene)
    frame = engine.step(640, 480)
    assert frame.phase_name == "dots"
    assert frame.edges == []
    assert frame.edge_color == (1.0, 1.0, 1.0)

    frame = engine.step()
    assert frame.phase_name == "mesh"
    assert frame.edges
    assert frame.edge_color == pytest.approx((0x22 / 255.0, 0xD3 / 255.0, 0xEE / 255.0))
