"""
Handles the core simulation logic and collision physics.

This module defines the Simulation class, which is responsible for
advancing the state of the particle system by one tick: resolving
pairwise bubble collisions, integrating motion and applying the boundary
bounce policy.
"""
import logging
import math
import numpy as np
from typing import Dict, Any
from particle import ParticleSystem
from constants import BOUNDARY_MARGIN, RESTITUTION
from numba import jit

# Coincident-pair warnings are emitted at most once per this many steps.
SKIP_WARNING_INTERVAL = 60

# --- Data Contracts ---
#
# resolve_collisions(positions, velocities, radii, colliding, restitution) -> int:
#   - Inputs:
#     - positions: float64 (N, 2), mutated in place.
#     - velocities: float64 (N, 2), mutated in place.
#     - radii: float64 (N,), all > 0.
#     - colliding: bool (N,), the per-bubble latch, mutated in place.
#     - restitution: float in [0, 1].
#   - Outputs: The number of overlapping pairs skipped because their
#     centers coincide exactly.
#   - Invariants: Pairs are visited as (i, j), i < j, in ascending order.
#     A resolved pair is left exactly touching.
#
# class Simulation:
#   - __init__(self, particles: ParticleSystem, params: Dict[str, Any]):
#     - Inputs:
#       - particles: An initialized ParticleSystem object.
#       - params: Dictionary of simulation parameters from config.json.
#         - "restitution": float
#         - "boundary_margin": float
#     - Outputs: None
#
#   - step(self, width: float, height: float) -> bool:
#     - Inputs: The viewport size for this tick.
#     - Outputs: True if the tick was committed, False if it was discarded
#       because it produced non-finite state.
#     - Raises: Any exception from the tick, after rolling the state back.
#     - Side Effects: Modifies the internal ParticleSystem (positions,
#       velocities, collision latches).
#     - Invariants: Particle count remains constant.


@jit(nopython=True)
def resolve_collisions(positions, velocities, radii, colliding, restitution):
    """
    Numba-jitted pairwise overlap test and impulse response.

    A pair is only resolved when neither member is latched. A bubble's
    latch is cleared only once it overlaps no partner at all this tick.
    """
    n = positions.shape[0]
    skipped = 0
    overlapping = np.zeros(n, dtype=np.bool_)
    for i in range(n):
        for j in range(i + 1, n):
            dx = positions[i, 0] - positions[j, 0]
            dy = positions[i, 1] - positions[j, 1]
            distance = math.sqrt(dx * dx + dy * dy)
            r_i = radii[i]
            r_j = radii[j]

            if distance >= r_i + r_j:
                continue

            overlapping[i] = True
            overlapping[j] = True

            if colliding[i] or colliding[j]:
                continue

            # Coincident centers have no normal.
            if distance == 0.0:
                skipped += 1
                continue

            nx = dx / distance
            ny = dy / distance

            rvx = velocities[i, 0] - velocities[j, 0]
            rvy = velocities[i, 1] - velocities[j, 1]
            vn = rvx * nx + rvy * ny

            # Not gated on vn < 0: pairs that still overlap while separating
            # receive an impulse too.
            impulse = 2.0 * vn * restitution / (1.0 / r_i + 1.0 / r_j)

            velocities[i, 0] -= impulse * nx / r_i
            velocities[i, 1] -= impulse * ny / r_i
            velocities[j, 0] += impulse * nx / r_j
            velocities[j, 1] += impulse * ny / r_j

            half_overlap = (r_i + r_j - distance) / 2.0
            positions[i, 0] += half_overlap * nx
            positions[i, 1] += half_overlap * ny
            positions[j, 0] -= half_overlap * nx
            positions[j, 1] -= half_overlap * ny

            colliding[i] = True
            colliding[j] = True

    for k in range(n):
        if not overlapping[k]:
            colliding[k] = False
    return skipped


class Simulation:
    """
    Advances the bubble population one tick at a time.
    """
    def __init__(self, particles: ParticleSystem, params: Dict[str, Any]):
        """
        Initializes the simulation environment.

        Args:
            particles (ParticleSystem): The particle system to simulate.
            params (Dict[str, Any]): Simulation parameters from config.
        """
        self.particles = particles
        self.restitution = float(params.get('restitution', RESTITUTION))
        self.boundary_margin = float(params.get('boundary_margin', BOUNDARY_MARGIN))
        self.step_count = 0
        self.skipped_pairs = 0
        self.discarded_steps = 0
        self._last_skip_warning = -SKIP_WARNING_INTERVAL

        logging.info(
            f"Simulation initialized: restitution={self.restitution}, "
            f"boundary margin={self.boundary_margin}."
        )

    def _advance(self, width: float, height: float) -> int:
        particles = self.particles

        # 1. Resolve every pair (i < j) using the Numba kernel
        skipped = resolve_collisions(
            particles.positions, particles.velocities, particles.radii,
            particles.colliding, self.restitution
        )

        # 2. Move every bubble by its velocity
        particles.integrate()

        # 3. Reflect bubbles that have left the margin band
        particles.apply_boundary(width, height, self.boundary_margin)
        return skipped

    def step(self, width: float, height: float) -> bool:
        """
        Executes one tick of the simulation.

        The viewport size is passed in every tick since the window may be
        resized between ticks.
        """
        self.step_count += 1
        particles = self.particles
        if particles.particle_count == 0:
            return True

        state = particles.snapshot()
        try:
            skipped = self._advance(width, height)
        except Exception:
            particles.restore(state)
            raise

        if skipped:
            self.skipped_pairs += skipped
            if self.step_count - self._last_skip_warning >= SKIP_WARNING_INTERVAL:
                self._last_skip_warning = self.step_count
                logging.warning(
                    f"Step {self.step_count}: skipped {skipped} bubble pair(s) "
                    f"with coincident centers ({self.skipped_pairs} total)."
                )

        if not particles.is_finite():
            particles.restore(state)
            self.discarded_steps += 1
            logging.error(
                f"Step {self.step_count} produced non-finite bubble state. "
                f"Tick discarded."
            )
            return False

        return True
