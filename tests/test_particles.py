import pytest

from morph.config import MorphConfigError
from morph.particles import ParticleStore
from morph.shape_generators import ShapeSample, Vec3, generate_targets


def test_store_has_fixed_length():
    store = ParticleStore(32)
    assert len(store) == 32
    assert store.count == 32
    assert [p.index for p in store] == list(range(32))
    assert store[5].index == 5
    assert not hasattr(store, "append")


def test_non_positive_count_rejected():
    with pytest.raises(MorphConfigError):
        ParticleStore(0)
    with pytest.raises(ValueError):
        ParticleStore(-3)


def test_initial_scatter_is_deterministic():
    a = ParticleStore(10, spread=100)
    b = ParticleStore(10, spread=100)
    assert [p.position for p in a] == [p.position for p in b]
    assert all(abs(v) <= 50.0 for p in a for v in p.position.as_tuple())


def test_retarget_requires_one_sample_per_particle():
    store = ParticleStore(4)
    with pytest.raises(ValueError):
        store.retarget(generate_targets("sphere", 3, {}))


def test_retarget_picks_palette_colours():
    store = ParticleStore(20)
    store.retarget(generate_targets("sphere", 20, {}), ["#ff0000", "#0000ff"])
    colours = {p.target_color for p in store}
    assert colours <= {(1.0, 0.0, 0.0), (0.0, 0.0, 1.0)}
    # current colour only changes through easing
    assert all(p.color == (1.0, 1.0, 1.0) for p in store)


def test_sample_colour_wins_over_palette():
    store = ParticleStore(2)
    samples = [ShapeSample(Vec3(1, 2, 3), (0.5, 0.5, 0.5)), ShapeSample(Vec3())]
    store.retarget(samples, ["#00ff00"])
    assert store[0].target_color == (0.5, 0.5, 0.5)
    assert store[1].target_color == (0.0, 1.0, 0.0)
    assert store[0].target.as_tuple() == (1, 2, 3)


def test_retarget_copies_positions():
    store = ParticleStore(1)
    sample = ShapeSample(Vec3(1, 1, 1))
    store.retarget([sample])
    store[0].target.x = 5
    assert sample.position.x == 1


def test_scatter_resets_velocity():
    store = ParticleStore(3, spread=10)
    store[1].velocity = Vec3(4, 4, 4)
    store[1].position = Vec3(99, 99, 99)
    store.scatter(10)
    assert store[1].velocity.as_tuple() == (0.0, 0.0, 0.0)
    assert store[1].position == ParticleStore(3, spread=10)[1].position


def test_large_ratio_controls_sizes():
    assert all(p.size == 1.0 for p in ParticleStore(50, large_ratio=0.0, large_size=3.0))
    assert all(p.size == 3.0 for p in ParticleStore(50, large_ratio=1.0, large_size=3.0))
