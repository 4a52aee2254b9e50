"""Tests for the procedural shape generators."""
import math

import pytest

from morph.config import UnknownShapeError
from morph.shape_generators import (
    BUILTIN_GENERATORS,
    _bucket,
    _ceil_cbrt,
    cube_grid_coords,
    generate_targets,
    get_generator,
    is_viewport_relative,
)


def _norm(sample):
    p = sample.position
    return math.sqrt(p.x * p.x + p.y * p.y + p.z * p.z)


@pytest.mark.parametrize("name", sorted(BUILTIN_GENERATORS))
def test_generators_are_deterministic(name):
    params = {"time": 1.25}
    first = [s.position.as_tuple() for s in generate_targets(name, 50, params)]
    second = [s.position.as_tuple() for s in generate_targets(name, 50, params)]
    assert first == second
    assert all(math.isfinite(v) for point in first for v in point)


def test_sphere_512_is_uniform():
    samples = generate_targets("sphere", 512, {"radius": 200})
    for sample in samples:
        assert _norm(sample) == pytest.approx(200.0, abs=1e-6)

    upper = sum(1 for s in samples if s.position.y > 0)
    assert upper == 256

    mean_x = sum(s.position.x for s in samples) / 512
    mean_z = sum(s.position.z for s in samples) / 512
    assert abs(mean_x) < 10.0
    assert abs(mean_z) < 10.0


def test_sphere_512_has_no_large_gaps():
    points = [s.position.as_tuple() for s in generate_targets("sphere", 512, {"radius": 1.0})]
    assert len({tuple(round(v, 9) for v in p) for p in points}) == 512

    nearest = []
    for i, a in enumerate(points):
        nearest.append(min(math.dist(a, b) for j, b in enumerate(points) if j != i))
    mean = sum(nearest) / len(nearest)
    assert min(nearest) > 0.35 * mean
    assert max(nearest) < 1.8 * mean


def test_sphere_poles():
    gen = get_generator("sphere")
    assert gen(0, 10, {"radius": 50}).position.y == pytest.approx(50.0)
    assert gen(9, 10, {"radius": 50}).position.y == pytest.approx(-50.0)


def test_ceil_cbrt_is_exact_on_perfect_cubes():
    assert _ceil_cbrt(1) == 1
    assert _ceil_cbrt(2) == 2
    assert _ceil_cbrt(27) == 3
    assert _ceil_cbrt(28) == 4
    assert _ceil_cbrt(1000) == 10
    assert _ceil_cbrt(1001) == 11


def test_cube_1000_last_index_is_far_corner():
    assert cube_grid_coords(0, 1000) == (0, 0, 0)
    assert cube_grid_coords(999, 1000) == (9, 9, 9)

    samples = generate_targets("cube", 1000, {"spacing": 10})
    assert samples[999].position.as_tuple() == pytest.approx((45.0, 45.0, 45.0))
    assert samples[0].position.as_tuple() == pytest.approx((-45.0, -45.0, -45.0))
    assert len({s.position.as_tuple() for s in samples}) == 1000


def test_bucket_assigns_remainder_to_last_bucket():
    assert _bucket(5, 10, 3) == (1, 2, 3)
    assert _bucket(9, 10, 3) == (2, 3, 4)
    assert _bucket(0, 2, 5) == (0, 0, 1)


def test_tower_last_layer_takes_remainder():
    samples = generate_targets("tower", 25, {"layers": 4, "height": 360})
    bottom = [s for s in samples if s.position.y == pytest.approx(-180.0)]
    top = [s for s in samples if s.position.y == pytest.approx(180.0)]
    assert len(top) == 6
    assert len(bottom) == 7


def test_ring_stays_within_band():
    samples = generate_targets("ring", 200, {"radius": 100, "spread": 10, "thickness": 4})
    for sample in samples:
        p = sample.position
        assert 90.0 - 1e-9 <= math.hypot(p.x, p.z) <= 110.0 + 1e-9
        assert abs(p.y) <= 2.0


def test_prism_points_lie_inside_circumscribed_sphere():
    samples = generate_targets("prism", 300, {"radius": 150, "sides": 5, "bands": 3})
    assert all(_norm(s) <= 150.0 + 1e-6 for s in samples)


def test_flow_moves_with_time():
    gen = get_generator("flow")
    early = gen(7, 100, {"time": 0.0}).position
    later = gen(7, 100, {"time": 2.0}).position
    assert early.as_tuple() != later.as_tuple()
    assert early.z == later.z


def test_viewport_ratio_overrides_absolute_length():
    params = {"radius": 10, "radius_ratio": 0.5, "viewport": 400}
    assert is_viewport_relative(params)
    top = get_generator("sphere")(0, 10, params).position
    assert top.y == pytest.approx(200.0)
    assert not is_viewport_relative({"radius": 10})


def test_ratio_without_viewport_falls_back():
    top = get_generator("sphere")(0, 10, {"radius": 10, "radius_ratio": 0.5}).position
    assert top.y == pytest.approx(10.0)


def test_aliases_resolve_to_builtins():
    assert get_generator("globe") is get_generator("sphere")
    assert get_generator("Lattice") is get_generator("cube")


def test_unknown_shape_raises():
    with pytest.raises(UnknownShapeError):
        get_generator("dodecahedron")
