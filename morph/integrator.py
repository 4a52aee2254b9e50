"""Per-frame motion models moving particles towards their targets."""

from __future__ import annotations

import math
from typing import Optional, Union

from .config import IntegratorOptions, MorphConfigError, _check_rate
from .particles import Particle
from .shape_generators import Vec3, _rand_for_index

__all__ = [
    "EasingIntegrator",
    "SpringIntegrator",
    "make_integrator",
    "ease_color",
    "jitter_offset",
]


class EasingIntegrator:
    """Fractional approach: each axis covers ``rate`` of the remaining distance.

    With ``0 < rate <= 1`` the distance to a fixed target never grows and the
    position never crosses the target.
    """

    mode = "easing"

    def __init__(self, rate: float = 0.05) -> None:
        self.rate = _check_rate(rate)

    def step(self, particle: Particle, rate: Optional[float] = None) -> None:
        k = self.rate if rate is None else rate
        pos = particle.position
        target = particle.target
        pos.x += (target.x - pos.x) * k
        pos.y += (target.y - pos.y) * k
        pos.z += (target.z - pos.z) * k


class SpringIntegrator:
    """Damped spring: the velocity is pulled towards the target then damped."""

    mode = "spring"

    def __init__(self, stiffness: float = 0.02, damping: float = 0.9) -> None:
        if stiffness <= 0:
            raise MorphConfigError("spring stiffness must be positive")
        if not (0.0 <= damping < 1.0):
            raise MorphConfigError("spring damping must be in [0, 1)")
        self.stiffness = float(stiffness)
        self.damping = float(damping)

    def step(self, particle: Particle, rate: Optional[float] = None) -> None:
        del rate
        pos = particle.position
        vel = particle.velocity
        target = particle.target
        vel.x = (vel.x + (target.x - pos.x) * self.stiffness) * self.damping
        vel.y = (vel.y + (target.y - pos.y) * self.stiffness) * self.damping
        vel.z = (vel.z + (target.z - pos.z) * self.stiffness) * self.damping
        pos.x += vel.x
        pos.y += vel.y
        pos.z += vel.z


Integrator = Union[EasingIntegrator, SpringIntegrator]


def make_integrator(options: Union[IntegratorOptions, str]) -> Integrator:
    if isinstance(options, str):
        options = IntegratorOptions(mode=options)
    mode = options.mode.strip().lower()
    if mode == "easing":
        return EasingIntegrator(options.rate)
    if mode == "spring":
        return SpringIntegrator(options.stiffness, options.damping)
    raise MorphConfigError(f"unknown integrator mode {options.mode!r}")


def ease_color(particle: Particle, rate: float) -> None:
    """Move each colour channel ``rate`` of the way towards the target colour.

    ``rate`` is expected to be validated already, see
    :class:`~morph.config.IntegratorOptions`.
    """

    r, g, b = particle.color
    tr, tg, tb = particle.target_color
    particle.color = (r + (tr - r) * rate, g + (tg - g) * rate, b + (tb - b) * rate)


def jitter_offset(index: int, time: float, amplitude: float, frequency: float = 1.0) -> Vec3:
    """Displacement for particle ``index`` at ``time``.

    The offset depends only on its arguments, so it is recomputed every frame
    and never accumulates into the stored position.
    """

    if amplitude == 0.0:
        return Vec3()
    t = time * frequency
    two_pi = 2.0 * math.pi
    return Vec3(
        math.sin(t + _rand_for_index(index, 21) * two_pi) * amplitude,
        math.sin(t * 1.3 + _rand_for_index(index, 22) * two_pi) * amplitude,
        math.sin(t * 0.7 + _rand_for_index(index, 23) * two_pi) * amplitude,
    )
