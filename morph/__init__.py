"""Particle morph engine: a fixed particle population cycling between procedural shapes."""

from .engine import Frame, MorphEngine, RenderItem
from .scenes import SceneDescriptor, SceneRegistry, get_scene_registry

__version__ = "0.1.0"

__all__ = [
    "Frame",
    "MorphEngine",
    "RenderItem",
    "SceneDescriptor",
    "SceneRegistry",
    "get_scene_registry",
]
