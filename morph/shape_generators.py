"""Procedural target shapes for the particle population.

Every generator maps ``(index, total, params)`` to a :class:`ShapeSample`.
Generators are pure: the same arguments always give the same point, and any
per-particle variety comes from :func:`_rand_for_index` rather than a random
number generator.  Dynamic shapes read ``params["time"]`` and are regenerated
on every frame by the engine.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, Dict, List, Mapping, Optional, Tuple

from .config import UnknownShapeError, _coerce_float

__all__ = [
    "Vec3",
    "ShapeSample",
    "ShapeGenerator",
    "BUILTIN_GENERATORS",
    "DYNAMIC_SHAPES",
    "GOLDEN_ANGLE",
    "canonical_shape",
    "cube_grid_coords",
    "get_generator",
    "generate_targets",
    "is_viewport_relative",
]

RGB = Tuple[float, float, float]

GOLDEN_ANGLE = math.pi * (3.0 - math.sqrt(5.0))


@dataclass
class Vec3:
    """Mutable 3D vector used for positions, targets and velocities."""

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def copy(self) -> "Vec3":
        return Vec3(self.x, self.y, self.z)

    def as_tuple(self) -> Tuple[float, float, float]:
        return (self.x, self.y, self.z)


@dataclass(frozen=True)
class ShapeSample:
    position: Vec3
    color: Optional[RGB] = None


ShapeGenerator = Callable[[int, int, Mapping[str, object]], ShapeSample]


def _rand_for_index(index: int, salt: int = 0) -> float:
    s = index * 12.9898 + salt * 78.233
    x = math.sin(s) * 43758.5453
    return x - math.floor(x)


def _param(params: Mapping[str, object], key: str, default: float) -> float:
    return _coerce_float(params.get(key), default)


def _length(params: Mapping[str, object], key: str, default: float) -> float:
    """Read a length, honouring ``<key>_ratio`` relative to the viewport."""

    ratio = params.get(f"{key}_ratio")
    viewport = _param(params, "viewport", 0.0)
    if ratio is not None and viewport > 0:
        return _coerce_float(ratio, 0.0) * viewport
    return _param(params, key, default)


def _count(params: Mapping[str, object], key: str, default: int) -> int:
    return max(1, int(_param(params, key, default)))


def is_viewport_relative(params: Mapping[str, object]) -> bool:
    return any(isinstance(key, str) and key.endswith("_ratio") for key in params)


def _ceil_cbrt(n: int) -> int:
    """Smallest ``dim`` with ``dim ** 3 >= n``, computed without float rounding."""

    if n <= 1:
        return 1
    dim = max(1, int(round(n ** (1.0 / 3.0))))
    while dim ** 3 < n:
        dim += 1
    while dim > 1 and (dim - 1) ** 3 >= n:
        dim -= 1
    return dim


def cube_grid_coords(index: int, total: int) -> Tuple[int, int, int]:
    dim = _ceil_cbrt(total)
    return (index % dim, (index // dim) % dim, index // (dim * dim))


def _bucket(index: int, total: int, buckets: int) -> Tuple[int, int, int]:
    """Split ``total`` into contiguous buckets.

    Returns ``(bucket, offset, size)`` where ``offset`` is the position of
    ``index`` inside its bucket.  The remainder of the division is appended to
    the last bucket.
    """

    total = max(1, total)
    buckets = max(1, min(buckets, total))
    per = total // buckets
    bucket = min(index // per, buckets - 1)
    start = bucket * per
    size = per if bucket < buckets - 1 else total - start
    return bucket, index - start, size


# ---------------------------------------------------------------------------
# Generators


def _gen_sphere(index: int, total: int, params: Mapping[str, object]) -> ShapeSample:
    radius = _length(params, "radius", 200.0)
    y = 1.0 - 2.0 * index / max(1, total - 1)
    r = math.sqrt(max(0.0, 1.0 - y * y))
    theta = GOLDEN_ANGLE * index
    return ShapeSample(Vec3(math.cos(theta) * r * radius, y * radius, math.sin(theta) * r * radius))


def _gen_cube(index: int, total: int, params: Mapping[str, object]) -> ShapeSample:
    spacing = _length(params, "spacing", 40.0)
    dim = _ceil_cbrt(total)
    gx, gy, gz = cube_grid_coords(index, total)
    offset = (dim - 1) / 2.0
    return ShapeSample(Vec3((gx - offset) * spacing, (gy - offset) * spacing, (gz - offset) * spacing))


def _gen_cloud(index: int, total: int, params: Mapping[str, object]) -> ShapeSample:
    major = _length(params, "radius", 220.0)
    tube = _length(params, "tube", 90.0)
    u = _rand_for_index(index, 1) * 2.0 * math.pi
    v = _rand_for_index(index, 2) * 2.0 * math.pi
    spread = tube * (0.35 + 0.65 * _rand_for_index(index, 3))
    ring = major + spread * math.cos(v)
    return ShapeSample(Vec3(ring * math.cos(u), spread * math.sin(v), ring * math.sin(u)))


def _gen_ring(index: int, total: int, params: Mapping[str, object]) -> ShapeSample:
    radius = _length(params, "radius", 200.0)
    spread = _length(params, "spread", 20.0)
    thickness = _length(params, "thickness", 10.0)
    turns = _param(params, "turns", 1.0)
    tilt = math.radians(_param(params, "tilt", 0.0))
    angle = index / max(1, total) * turns * 2.0 * math.pi
    r = radius + (_rand_for_index(index, 4) - 0.5) * 2.0 * spread
    x = math.cos(angle) * r
    y = (_rand_for_index(index, 5) - 0.5) * thickness
    z = math.sin(angle) * r
    cos_t = math.cos(tilt)
    sin_t = math.sin(tilt)
    return ShapeSample(Vec3(x, y * cos_t - z * sin_t, z * cos_t + y * sin_t))


def _gen_tower(index: int, total: int, params: Mapping[str, object]) -> ShapeSample:
    layers = _count(params, "layers", 12)
    width = _length(params, "width", 160.0)
    depth = _length(params, "depth", 100.0)
    height = _length(params, "height", 360.0)
    layer, offset, size = _bucket(index, total, layers)
    used_layers = max(1, min(layers, total))
    perimeter = 2.0 * (width + depth)
    walk = offset / size * perimeter
    hw = width / 2.0
    hd = depth / 2.0
    if walk < width:
        x, z = -hw + walk, -hd
    elif walk < width + depth:
        x, z = hw, -hd + (walk - width)
    elif walk < 2.0 * width + depth:
        x, z = hw - (walk - width - depth), hd
    else:
        x, z = -hw, hd - (walk - 2.0 * width - depth)
    if used_layers > 1:
        y = height / 2.0 - layer * height / (used_layers - 1)
    else:
        y = 0.0
    return ShapeSample(Vec3(x, y, z))


def _gen_prism(index: int, total: int, params: Mapping[str, object]) -> ShapeSample:
    radius = _length(params, "radius", 180.0)
    sides = max(3, _count(params, "sides", 6))
    bands = _count(params, "bands", 4)
    azimuth = _rand_for_index(index, 6) * 2.0 * math.pi
    polar = math.acos(1.0 - 2.0 * _rand_for_index(index, 7))

    # Snap the azimuth onto the polygon side it falls in.
    step = 2.0 * math.pi / sides
    sector = min(int(azimuth / step), sides - 1)
    normal = (sector + 0.5) * step
    apothem = math.cos(step / 2.0)
    tangent = apothem * math.tan(azimuth - normal)

    # Interpolate linearly between band edges so each band stays planar.
    band_step = math.pi / bands
    band = min(int(polar / band_step), bands - 1)
    frac = (polar - band * band_step) / band_step
    top = band * band_step
    bottom = top + band_step
    y = math.cos(top) + (math.cos(bottom) - math.cos(top)) * frac
    reach = math.sin(top) + (math.sin(bottom) - math.sin(top)) * frac

    nx = math.cos(normal)
    nz = math.sin(normal)
    x = (nx * apothem - nz * tangent) * reach
    z = (nz * apothem + nx * tangent) * reach
    return ShapeSample(Vec3(x * radius, -y * radius, z * radius))


def _gen_flow(index: int, total: int, params: Mapping[str, object]) -> ShapeSample:
    lanes = _count(params, "lanes", 8)
    length = _length(params, "length", 600.0)
    spacing = _length(params, "spacing", 40.0)
    amplitude = _length(params, "amplitude", 30.0)
    wavelength = max(1e-6, _length(params, "wavelength", 200.0))
    speed = _param(params, "speed", 1.0)
    time = _param(params, "time", 0.0)
    lane, offset, size = _bucket(index, total, lanes)
    used_lanes = max(1, min(lanes, total))
    u = (offset / size + time * speed * 0.05) % 1.0
    x = (u - 0.5) * length
    y = math.sin(x / wavelength * 2.0 * math.pi + lane * 0.7 + time * speed) * amplitude
    z = (lane - (used_lanes - 1) / 2.0) * spacing
    return ShapeSample(Vec3(x, y, z))


def _gen_rings(index: int, total: int, params: Mapping[str, object]) -> ShapeSample:
    count = _count(params, "rings", 5)
    radius = _length(params, "radius", 60.0)
    step = _length(params, "step", 40.0)
    thickness = _length(params, "thickness", 6.0)
    ring, offset, size = _bucket(index, total, count)
    angle = offset / size * 2.0 * math.pi
    r = radius + ring * step
    y = (_rand_for_index(index, 8) - 0.5) * thickness
    return ShapeSample(Vec3(math.cos(angle) * r, y, math.sin(angle) * r))


def _gen_columns(index: int, total: int, params: Mapping[str, object]) -> ShapeSample:
    count = _count(params, "columns", 8)
    radius = _length(params, "radius", 200.0)
    height = _length(params, "height", 400.0)
    girth = _length(params, "girth", 6.0)
    column, offset, size = _bucket(index, total, count)
    angle = column / max(1, min(count, total)) * 2.0 * math.pi
    t = offset / max(1, size - 1)
    wobble = _rand_for_index(index, 10) * 2.0 * math.pi
    x = math.cos(angle) * radius + math.cos(wobble) * girth
    z = math.sin(angle) * radius + math.sin(wobble) * girth
    return ShapeSample(Vec3(x, (t - 0.5) * height, z))


def _gen_shield(index: int, total: int, params: Mapping[str, object]) -> ShapeSample:
    layers = _count(params, "layers", 3)
    width = _length(params, "width", 220.0)
    height = _length(params, "height", 260.0)
    depth = _length(params, "depth", 30.0)
    layer, offset, size = _bucket(index, total, layers)
    used_layers = max(1, min(layers, total))
    scale = 1.0 - layer * 0.18
    angle = offset / size * 2.0 * math.pi
    s = math.sin(angle)
    c = math.cos(angle)
    x = width / 2.0 * s
    if c < 0.0:
        # lower half tapers to a point
        x *= math.sqrt(1.0 + c)
        y = -c * height * 0.6
    else:
        y = -min(1.0, c * 1.6) * height * 0.4
    z = (layer - (used_layers - 1) / 2.0) * depth
    return ShapeSample(Vec3(x * scale, y * scale, z))


BUILTIN_GENERATORS: Dict[str, ShapeGenerator] = {
    "sphere": _gen_sphere,
    "cube": _gen_cube,
    "cloud": _gen_cloud,
    "ring": _gen_ring,
    "tower": _gen_tower,
    "prism": _gen_prism,
    "flow": _gen_flow,
    "rings": _gen_rings,
    "columns": _gen_columns,
    "shield": _gen_shield,
}

_ALIASES = {
    "globe": "sphere",
    "fibo_sphere": "sphere",
    "lattice": "cube",
    "torus": "cloud",
    "disk": "ring",
    "lanes": "flow",
}

DYNAMIC_SHAPES = frozenset({"flow"})


def canonical_shape(name: str) -> str:
    key = str(name).strip().lower()
    return _ALIASES.get(key, key)


def get_generator(name: str) -> ShapeGenerator:
    key = canonical_shape(name)
    try:
        return BUILTIN_GENERATORS[key]
    except KeyError:
        raise UnknownShapeError(f"unknown shape {name!r}") from None


def generate_targets(name: str, total: int, params: Mapping[str, object]) -> List[ShapeSample]:
    generator = get_generator(name)
    return [generator(index, total, params) for index in range(total)]
