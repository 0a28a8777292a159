"""
Controls how the bubble population grows over time.

This module defines the PopulationManager class, which spawns bursts of
bubbles at random viewport edges and keeps a one-shot deadline for the
next burst. The deadline is polled by the host loop between ticks, so
spawning never runs while a tick is iterating the particle arrays.
"""
import logging
from typing import Dict, Any, Callable, List, Optional, Tuple
from particle import ParticleSystem
from constants import (
    DEFAULT_BUBBLE_RADIUS, BURST_SIZE, SPAWN_DELAY_MIN_MS,
    SPAWN_DELAY_MAX_MS, MAX_PARTICLES
)

# --- Data Contracts ---
#
# class PopulationManager:
#   - __init__(self, particles, params, viewport):
#     - Inputs:
#       - particles: The ParticleSystem that owns bubble state.
#       - params: Dictionary of simulation parameters from config.json.
#         - "bubble_radius": float > 0
#         - "burst_size": int
#         - "spawn_delay_min_ms", "spawn_delay_max_ms": int
#         - "max_particles": int, 0 for unbounded growth
#       - viewport: Callable returning the current (width, height).
#
#   - spawn_burst(self, count: int) -> List[int]:
#     - Outputs: Arena indices of the spawned (or recycled) bubbles.
#     - Invariants: particle_count never exceeds max_particles when it
#       is non-zero.
#
#   - update(self, now_ms: int) -> List[int]:
#     - Side Effects: Spawns a burst and re-arms the deadline if it has
#       passed. Returns the indices spawned, or an empty list.

ViewportFn = Callable[[], Tuple[float, float]]


class PopulationManager:
    """
    Owns spawning and the repeating burst schedule for a ParticleSystem.
    """
    def __init__(self, particles: ParticleSystem, params: Dict[str, Any], viewport: ViewportFn):
        self.particles = particles
        self.viewport = viewport
        self.radius = float(params.get('bubble_radius', DEFAULT_BUBBLE_RADIUS))
        self.burst_size = int(params.get('burst_size', BURST_SIZE))
        self.spawn_delay_min_ms = params.get('spawn_delay_min_ms', SPAWN_DELAY_MIN_MS)
        self.spawn_delay_max_ms = params.get('spawn_delay_max_ms', SPAWN_DELAY_MAX_MS)
        self.max_particles = int(params.get('max_particles', MAX_PARTICLES))

        if self.radius <= 0:
            msg = f"bubble_radius must be > 0, got {self.radius}."
            logging.critical(msg)
            raise ValueError(msg)

        self.next_burst_at: Optional[float] = None
        self._reuse_cursor = 0
        self.bursts_spawned = 0

        capacity = self.max_particles if self.max_particles else "unbounded"
        logging.info(
            f"PopulationManager initialized: radius={self.radius}, "
            f"burst size={self.burst_size}, capacity={capacity}."
        )

    @property
    def running(self) -> bool:
        return self.next_burst_at is not None

    def spawn_burst(self, count: int) -> List[int]:
        """
        Creates `count` bubbles on random viewport edges.

        Once a capacity is configured and reached, existing slots are
        recycled in round-robin order instead of growing the arena.
        """
        width, height = self.viewport()
        particles = self.particles

        if self.max_particles:
            new_count = max(0, min(count, self.max_particles - particles.particle_count))
        else:
            new_count = count

        indices: List[int] = []
        if new_count:
            positions = particles.random_edge_positions(new_count, self.radius, width, height)
            velocities = particles.random_velocities(new_count)
            indices.extend(int(i) for i in particles.add_particles(positions, velocities, self.radius))

        for _ in range(count - new_count):
            index = self._reuse_cursor
            particles.recycle(index, width, height)
            indices.append(index)
            self._reuse_cursor = (self._reuse_cursor + 1) % particles.particle_count

        self.bursts_spawned += 1
        logging.info(
            f"Spawned burst of {count} bubbles ({count - new_count} recycled). "
            f"Population: {particles.particle_count}."
        )
        return indices

    def schedule_next_burst(self, now_ms: float) -> float:
        """Arms the one-shot deadline for the next burst and returns it."""
        delay = self.particles.rng.uniform(self.spawn_delay_min_ms, self.spawn_delay_max_ms)
        self.next_burst_at = now_ms + delay
        logging.debug(f"Next burst in {delay:.0f} ms.")
        return self.next_burst_at

    def start(self, now_ms: float) -> List[int]:
        """Spawns the first burst immediately and arms the schedule."""
        indices = self.spawn_burst(self.burst_size)
        self.schedule_next_burst(now_ms)
        return indices

    def update(self, now_ms: float) -> List[int]:
        if self.next_burst_at is None or now_ms < self.next_burst_at:
            return []
        indices = self.spawn_burst(self.burst_size)
        self.schedule_next_burst(now_ms)
        return indices

    def stop(self) -> None:
        """Disarms the schedule; no further bursts spawn until start() is called."""
        if self.next_burst_at is not None:
            logging.info("Spawn schedule stopped.")
        self.next_burst_at = None
