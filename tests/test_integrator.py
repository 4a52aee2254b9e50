"""Tests for the easing and spring motion models."""
import math

import pytest

from morph.config import IntegratorOptions, MorphConfigError
from morph.integrator import (
    EasingIntegrator,
    SpringIntegrator,
    ease_color,
    jitter_offset,
    make_integrator,
)
from morph.particles import Particle
from morph.shape_generators import Vec3


def make_particle(start=(0.0, 0.0, 0.0), target=(100.0, -50.0, 25.0)):
    return Particle(index=0, position=Vec3(*start), target=Vec3(*target))


def test_easing_converges_without_overshoot():
    particle = make_particle()
    integrator = EasingIntegrator(0.1)
    previous = math.inf
    for _ in range(300):
        integrator.step(particle)
        p = particle.position
        assert 0.0 <= p.x <= 100.0
        assert -50.0 <= p.y <= 0.0
        assert 0.0 <= p.z <= 25.0
        distance = math.dist(p.as_tuple(), particle.target.as_tuple())
        assert distance <= previous
        previous = distance
    assert previous < 1e-6


def test_easing_rate_one_snaps_to_target():
    particle = make_particle()
    EasingIntegrator(1.0).step(particle)
    assert particle.position.as_tuple() == (100.0, -50.0, 25.0)


@pytest.mark.parametrize("rate", [0.0, -0.1, 1.5])
def test_easing_rejects_bad_rates(rate):
    with pytest.raises(MorphConfigError):
        EasingIntegrator(rate)


def test_easing_uses_override_rate():
    particle = make_particle(target=(10.0, 0.0, 0.0))
    EasingIntegrator(0.1).step(particle, rate=0.5)
    assert particle.position.x == pytest.approx(5.0)


def test_spring_settles_on_target():
    particle = make_particle()
    integrator = SpringIntegrator(stiffness=0.02, damping=0.9)
    for _ in range(1500):
        integrator.step(particle)
    assert particle.position.as_tuple() == pytest.approx((100.0, -50.0, 25.0), abs=1e-3)
    assert abs(particle.velocity.x) < 1e-3


def test_spring_first_step_follows_formula():
    particle = make_particle(target=(10.0, 0.0, 0.0))
    SpringIntegrator(stiffness=0.1, damping=0.5).step(particle)
    # v = (0 + 10 * 0.1) * 0.5, p = 0 + v
    assert particle.velocity.x == pytest.approx(0.5)
    assert particle.position.x == pytest.approx(0.5)


def test_make_integrator_modes():
    assert isinstance(make_integrator("easing"), EasingIntegrator)
    spring = make_integrator(IntegratorOptions(mode="spring", stiffness=0.05, damping=0.8))
    assert isinstance(spring, SpringIntegrator)
    assert spring.damping == 0.8
    with pytest.raises(MorphConfigError):
        make_integrator("verlet")


def test_ease_color_per_channel():
    particle = make_particle()
    particle.color = (0.0, 1.0, 0.5)
    particle.target_color = (1.0, 0.0, 0.5)
    ease_color(particle, 0.25)
    assert particle.color == pytest.approx((0.25, 0.75, 0.5))


def test_jitter_is_a_pure_function_of_index_and_time():
    a = jitter_offset(3, 1.5, 2.0, 1.0)
    b = jitter_offset(3, 1.5, 2.0, 1.0)
    assert a == b
    assert all(abs(v) <= 2.0 for v in a.as_tuple())
    assert jitter_offset(3, 1.5, 0.0).as_tuple() == (0.0, 0.0, 0.0)
    assert jitter_offset(4, 1.5, 2.0) != a
