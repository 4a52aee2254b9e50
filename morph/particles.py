"""Fixed-size particle population."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, Sequence, Tuple

from .config import MorphConfigError, hex_to_rgb
from .shape_generators import ShapeSample, Vec3, _rand_for_index

__all__ = ["Particle", "ParticleStore"]

RGB = Tuple[float, float, float]


@dataclass
class Particle:
    """A single particle; ``target`` and ``target_color`` are what it eases towards."""

    index: int
    position: Vec3
    target: Vec3
    velocity: Vec3 = field(default_factory=Vec3)
    color: RGB = (1.0, 1.0, 1.0)
    target_color: RGB = (1.0, 1.0, 1.0)
    size: float = 1.0


class ParticleStore:
    """Ordered population whose length never changes after construction.

    Index ``i`` always refers to the same particle, which is what lets shape
    generators hand out per-index targets and colours.
    """

    __slots__ = ("_particles",)

    def __init__(
        self,
        count: int,
        *,
        spread: float = 600.0,
        color: RGB = (1.0, 1.0, 1.0),
        large_ratio: float = 0.0,
        large_size: float = 2.0,
    ) -> None:
        count = int(count)
        if count <= 0:
            raise MorphConfigError("particle count must be positive")
        particles = []
        for index in range(count):
            size = large_size if _rand_for_index(index, 11) >= 1.0 - large_ratio else 1.0
            start = self._scatter_point(index, spread)
            particles.append(
                Particle(
                    index=index,
                    position=start,
                    target=start.copy(),
                    color=color,
                    target_color=color,
                    size=size,
                )
            )
        self._particles: Tuple[Particle, ...] = tuple(particles)

    @staticmethod
    def _scatter_point(index: int, spread: float) -> Vec3:
        return Vec3(
            (_rand_for_index(index, 12) - 0.5) * spread,
            (_rand_for_index(index, 13) - 0.5) * spread,
            (_rand_for_index(index, 14) - 0.5) * spread,
        )

    @property
    def count(self) -> int:
        return len(self._particles)

    def __len__(self) -> int:
        return len(self._particles)

    def __iter__(self) -> Iterator[Particle]:
        return iter(self._particles)

    def __getitem__(self, index: int) -> Particle:
        return self._particles[index]

    def scatter(self, spread: float) -> None:
        """Move every particle back to its deterministic start position and stop it."""

        for particle in self._particles:
            particle.position = self._scatter_point(particle.index, spread)
            particle.velocity = Vec3()

    def retarget(self, samples: Sequence[ShapeSample], palette: Sequence[str] = ()) -> None:
        """Assign new targets, one sample per particle in index order."""

        if len(samples) != len(self._particles):
            raise ValueError(f"expected {len(self._particles)} samples, got {len(samples)}")
        colours = [hex_to_rgb(value) for value in palette]
        for particle, sample in zip(self._particles, samples):
            particle.target = sample.position.copy()
            if sample.color is not None:
                particle.target_color = sample.color
            elif colours:
                pick = int(_rand_for_index(particle.index, 9) * len(colours)) % len(colours)
                particle.target_color = colours[pick]
