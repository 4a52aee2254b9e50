import pytest

from morph.config import (
    DEFAULTS,
    TOOLTIPS,
    CameraOptions,
    IntegratorOptions,
    MorphConfigError,
    RenderOptions,
    SystemOptions,
    TimingOptions,
    hex_to_rgb,
    merge_config,
)


def test_every_default_has_a_tooltip():
    keys = {f"{section}.{key}" for section, values in DEFAULTS.items() for key in values}
    assert keys == set(TOOLTIPS)


def test_merge_config_is_deep_and_does_not_mutate_defaults():
    merged = merge_config(DEFAULTS, {"camera": {"focalLength": 900}, "extra": {"a": 1}})
    assert merged["camera"]["focalLength"] == 900
    assert merged["camera"]["nearClip"] == DEFAULTS["camera"]["nearClip"]
    assert merged["extra"] == {"a": 1}
    assert DEFAULTS["camera"]["focalLength"] == 600.0


def test_option_blocks_coerce_values():
    camera = CameraOptions.from_mapping({"focalLength": "900", "wideBreakpoint": 1280.7})
    assert camera.focal_length == 900.0
    assert camera.wide_breakpoint == 1280
    assert camera.near_clip == DEFAULTS["camera"]["nearClip"]

    render = RenderOptions.from_mapping({"trails": "yes", "edgeNeighbors": "2"})
    assert render.trails is True
    assert render.edge_neighbors == 2


def test_bad_numbers_fall_back_to_defaults():
    timing = TimingOptions.from_mapping({"phaseFrames": "soon", "settledRate": float("nan")})
    assert timing.phase_frames == 300
    assert timing.settled_rate == 0.02


def test_invalid_values_raise():
    with pytest.raises(MorphConfigError):
        CameraOptions.from_mapping({"focalLength": 0})
    with pytest.raises(MorphConfigError):
        RenderOptions.from_mapping({"shape": "triangle"})
    with pytest.raises(MorphConfigError):
        RenderOptions.from_mapping({"clearColor": "black"})
    with pytest.raises(MorphConfigError):
        SystemOptions.from_mapping({"particles": 0})


def test_system_clamps():
    system = SystemOptions.from_mapping({"dprClamp": 0.5})
    assert system.dpr_clamp == 1.0


def test_hex_to_rgb():
    assert hex_to_rgb("#fff") == (1.0, 1.0, 1.0)
    assert hex_to_rgb("#000000") == (0.0, 0.0, 0.0)
    assert hex_to_rgb("ff0000") == (1.0, 0.0, 0.0)
    with pytest.raises(MorphConfigError):
        hex_to_rgb("#12")
    with pytest.raises(ValueError):
        hex_to_rgb("#zzzzzz")


@pytest.mark.parametrize(
    "section",
    [{"rate": 0}, {"colorRate": 0}, {"colorRate": 1.2}, {"mode": "verlet"}, {"damping": 1.0}, {"stiffness": 0}],
)
def test_integrator_options_reject_bad_values(section):
    with pytest.raises(MorphConfigError):
        IntegratorOptions.from_mapping(section)


@pytest.mark.parametrize("section", [{"transitionRate": 0}, {"settledRate": 0}, {"settledRate": 2}, {"phaseFrames": 0}])
def test_timing_options_reject_bad_values(section):
    with pytest.raises(MorphConfigError):
        TimingOptions.from_mapping(section)
