"""
Manages the physical state of all bubbles in the simulation.

This module defines the ParticleSystem class, an append-only arena that
stores bubble state (position, velocity, radius, collision latch) in
NumPy arrays. A bubble's identity is its index in the arena; display
attributes such as color are kept by the renderer, keyed by that index.
"""
import logging
import numpy as np
from typing import Dict, Any, Tuple
from constants import EDGE_TOP, EDGE_RIGHT, EDGE_BOTTOM, EDGE_LEFT

# --- Data Contracts ---
#
# class ParticleSystem:
#   - __init__(self, params: Dict[str, Any]):
#     - Inputs:
#       - params: Dictionary of simulation parameters from config.json.
#         - "seed": int (optional, None means non-deterministic)
#     - Outputs: None
#     - Side Effects: Creates empty state arrays and a seeded RNG.
#     - Invariants:
#       - self.positions is a NumPy array of shape (N, 2) of dtype float64.
#       - self.velocities is a NumPy array of shape (N, 2) of dtype float64.
#       - self.radii is a NumPy array of shape (N,) of dtype float64, all > 0.
#       - self.colliding is a NumPy array of shape (N,) of dtype bool.
#       - self.generations is a NumPy array of shape (N,) of dtype int64.
#       - N never decreases.
#
#   - apply_boundary(self, width, height, margin) -> None:
#     - Side Effects: Negates each velocity component whose axis has left
#       the band [-margin, dimension + margin]. Positions are untouched.
#       Must be called exactly once per tick; a second call with the
#       bubble still outside would flip the component back.


class ParticleSystem:
    """
    A container for all bubbles, managing their state via NumPy arrays.
    """
    def __init__(self, params: Dict[str, Any]):
        """
        Initializes an empty particle system.

        Args:
            params (Dict[str, Any]): Simulation parameters from config.
        """
        self.seed = params.get('seed')

        # All randomness in the physics core is drawn from this generator.
        self.rng = np.random.default_rng(self.seed)

        self.positions = np.zeros((0, 2), dtype=np.float64)
        self.velocities = np.zeros((0, 2), dtype=np.float64)
        self.radii = np.zeros(0, dtype=np.float64)
        self.colliding = np.zeros(0, dtype=np.bool_)
        self.generations = np.zeros(0, dtype=np.int64)

        logging.info(f"ParticleSystem initialized (seed={self.seed}).")

    @property
    def particle_count(self) -> int:
        return self.radii.shape[0]

    def add_particles(self, positions: np.ndarray, velocities: np.ndarray, radius: float) -> np.ndarray:
        """
        Appends a batch of bubbles sharing one radius.

        Args:
            positions (np.ndarray): (K, 2) starting positions.
            velocities (np.ndarray): (K, 2) starting velocities.
            radius (float): Radius for every bubble in the batch.

        Returns:
            np.ndarray: The arena indices assigned to the new bubbles.

        Raises:
            ValueError: If the radius is not a positive finite number or
                the batch arrays have mismatched shapes.
        """
        if not np.isfinite(radius) or radius <= 0:
            msg = f"Bubble radius must be a positive finite number, got {radius}."
            logging.error(msg)
            raise ValueError(msg)

        positions = np.asarray(positions, dtype=np.float64).reshape(-1, 2)
        velocities = np.asarray(velocities, dtype=np.float64).reshape(-1, 2)
        if positions.shape != velocities.shape:
            msg = (
                f"Position batch {positions.shape} does not match "
                f"velocity batch {velocities.shape}."
            )
            logging.error(msg)
            raise ValueError(msg)

        count = positions.shape[0]
        start = self.particle_count
        self.positions = np.concatenate([self.positions, positions])
        self.velocities = np.concatenate([self.velocities, velocities])
        self.radii = np.concatenate([self.radii, np.full(count, radius, dtype=np.float64)])
        self.colliding = np.concatenate([self.colliding, np.zeros(count, dtype=np.bool_)])
        self.generations = np.concatenate([self.generations, np.zeros(count, dtype=np.int64)])

        logging.debug(f"Added {count} bubbles. Population is now {self.particle_count}.")
        return np.arange(start, start + count)

    def random_edge_positions(self, count: int, radius: float, width: float, height: float) -> np.ndarray:
        """
        Draws spawn positions just outside one of the four viewport edges.

        The edge is chosen uniformly per bubble; the position along the
        edge is uniform over the viewport's extent on that axis.
        """
        sides = self.rng.integers(0, 4, size=count)
        along = self.rng.random(count)
        positions = np.empty((count, 2), dtype=np.float64)

        top = sides == EDGE_TOP
        positions[top, 0] = along[top] * width
        positions[top, 1] = -radius

        right = sides == EDGE_RIGHT
        positions[right, 0] = width + radius
        positions[right, 1] = along[right] * height

        bottom = sides == EDGE_BOTTOM
        positions[bottom, 0] = along[bottom] * width
        positions[bottom, 1] = height + radius

        left = sides == EDGE_LEFT
        positions[left, 0] = -radius
        positions[left, 1] = along[left] * height

        return positions

    def random_velocities(self, count: int) -> np.ndarray:
        """Draws velocities uniform in [-1, 1] on each axis."""
        return self.rng.uniform(-1.0, 1.0, size=(count, 2))

    def integrate(self) -> None:
        """Advances every bubble by its velocity for one tick."""
        self.positions += self.velocities

    def apply_boundary(self, width: float, height: float, margin: float) -> None:
        """
        Reflects velocity components of bubbles that have left the margin band.

        Each axis is checked independently. There is no position correction
        and no energy loss.
        """
        if self.particle_count == 0:
            return
        r = self.radii[:, np.newaxis]
        upper = np.array([width, height], dtype=np.float64) + margin
        outside = (self.positions - r < -margin) | (self.positions + r > upper)
        self.velocities[outside] = -self.velocities[outside]

    def recycle(self, index: int, width: float, height: float) -> None:
        """
        Re-spawns the bubble at `index` on a random edge with a fresh velocity.

        The radius is kept. The generation counter is bumped so display-side
        state keyed by index can tell the slot holds a new bubble.
        """
        radius = self.radii[index]
        self.positions[index] = self.random_edge_positions(1, radius, width, height)[0]
        self.velocities[index] = self.random_velocities(1)[0]
        self.colliding[index] = False
        self.generations[index] += 1

    def snapshot(self) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """Copies the per-tick mutable state so a failed tick can be rolled back."""
        return self.positions.copy(), self.velocities.copy(), self.colliding.copy()

    def restore(self, state: Tuple[np.ndarray, np.ndarray, np.ndarray]) -> None:
        self.positions, self.velocities, self.colliding = state

    def is_finite(self) -> bool:
        return bool(np.isfinite(self.positions).all() and np.isfinite(self.velocities).all())
