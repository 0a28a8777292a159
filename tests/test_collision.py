import numpy as np
import pytest

from simulation import resolve_collisions


def arrays(positions, velocities, radii):
    positions = np.array(positions, dtype=np.float64)
    velocities = np.array(velocities, dtype=np.float64)
    radii = np.array(radii, dtype=np.float64)
    colliding = np.zeros(len(radii), dtype=np.bool_)
    return positions, velocities, radii, colliding


def distance(positions, i=0, j=1):
    return float(np.linalg.norm(positions[i] - positions[j]))


def test_head_on_equal_bubbles():
    positions, velocities, radii, colliding = arrays(
        [[0.0, 0.0], [150.0, 0.0]], [[1.0, 0.0], [-1.0, 0.0]], [100.0, 100.0]
    )

    skipped = resolve_collisions(positions, velocities, radii, colliding, 0.8)

    assert skipped == 0
    # n = (-1, 0), vn = -2, impulse = 2 * -2 * 0.8 / 0.02 = -160
    np.testing.assert_allclose(velocities, [[-0.6, 0.0], [0.6, 0.0]])
    np.testing.assert_allclose(positions, [[-25.0, 0.0], [175.0, 0.0]])
    assert distance(positions) == pytest.approx(200.0)
    assert colliding.all()


def test_unequal_radii_velocity_changes_are_weighted():
    positions, velocities, radii, colliding = arrays(
        [[10.0, 20.0], [90.0, 80.0]], [[0.3, -0.2], [-0.5, 0.4]], [50.0, 100.0]
    )
    before = velocities.copy()

    resolve_collisions(positions, velocities, radii, colliding, 0.8)

    delta_a = velocities[0] - before[0]
    delta_b = velocities[1] - before[1]
    np.testing.assert_allclose(delta_a, -(100.0 / 50.0) * delta_b)

    # Exact impulse from the pre-collision geometry.
    d = np.array([10.0 - 90.0, 20.0 - 80.0])
    n = d / np.linalg.norm(d)
    vn = np.dot(before[0] - before[1], n)
    impulse = 2 * vn * 0.8 / (1 / 50.0 + 1 / 100.0)
    np.testing.assert_allclose(delta_a, -impulse * n / 50.0)
    np.testing.assert_allclose(delta_b, impulse * n / 100.0)


def test_overlap_removed_along_normal():
    positions, velocities, radii, colliding = arrays(
        [[0.0, 0.0], [30.0, 40.0]], [[0.0, 0.0], [0.0, 0.0]], [40.0, 60.0]
    )
    midpoint = positions.mean(axis=0)

    resolve_collisions(positions, velocities, radii, colliding, 0.8)

    assert distance(positions) == pytest.approx(100.0)
    # Each bubble moves by half the overlap, so the midpoint is unchanged.
    np.testing.assert_allclose(positions.mean(axis=0), midpoint)


def test_separating_overlap_still_receives_impulse():
    # Already moving apart: vn > 0. The impulse is applied regardless.
    positions, velocities, radii, colliding = arrays(
        [[0.0, 0.0], [150.0, 0.0]], [[-1.0, 0.0], [1.0, 0.0]], [100.0, 100.0]
    )
    resolve_collisions(positions, velocities, radii, colliding, 0.8)
    np.testing.assert_allclose(velocities, [[0.6, 0.0], [-0.6, 0.0]])


def test_latch_prevents_second_resolution():
    positions, velocities, radii, colliding = arrays(
        [[0.0, 0.0], [150.0, 0.0]], [[-1.0, 0.0], [1.0, 0.0]], [100.0, 100.0]
    )
    resolve_collisions(positions, velocities, radii, colliding, 0.8)
    # After the first resolution the pair is approaching again.
    positions += velocities
    assert distance(positions) < 200.0

    velocities_after_first = velocities.copy()
    positions_before_second = positions.copy()
    resolve_collisions(positions, velocities, radii, colliding, 0.8)

    np.testing.assert_array_equal(velocities, velocities_after_first)
    np.testing.assert_array_equal(positions, positions_before_second)
    assert colliding.all()


def test_latch_cleared_once_pair_separates():
    positions, velocities, radii, colliding = arrays(
        [[0.0, 0.0], [500.0, 0.0]], [[0.0, 0.0], [0.0, 0.0]], [100.0, 100.0]
    )
    colliding[:] = True

    resolve_collisions(positions, velocities, radii, colliding, 0.8)

    assert not colliding.any()


def test_non_overlapping_pair_untouched():
    positions, velocities, radii, colliding = arrays(
        [[0.0, 0.0], [201.0, 0.0]], [[1.0, 0.0], [-1.0, 0.0]], [100.0, 100.0]
    )
    resolve_collisions(positions, velocities, radii, colliding, 0.8)
    np.testing.assert_array_equal(velocities, [[1.0, 0.0], [-1.0, 0.0]])
    np.testing.assert_array_equal(positions, [[0.0, 0.0], [201.0, 0.0]])


def test_exactly_touching_is_not_overlapping():
    positions, velocities, radii, colliding = arrays(
        [[0.0, 0.0], [200.0, 0.0]], [[1.0, 0.0], [-1.0, 0.0]], [100.0, 100.0]
    )
    resolve_collisions(positions, velocities, radii, colliding, 0.8)
    assert not colliding.any()
    np.testing.assert_array_equal(velocities, [[1.0, 0.0], [-1.0, 0.0]])


def test_coincident_centers_are_skipped():
    positions, velocities, radii, colliding = arrays(
        [[50.0, 50.0], [50.0, 50.0]], [[1.0, 0.0], [0.0, 1.0]], [10.0, 10.0]
    )

    skipped = resolve_collisions(positions, velocities, radii, colliding, 0.8)

    assert skipped == 1
    assert np.isfinite(positions).all()
    assert np.isfinite(velocities).all()
    np.testing.assert_array_equal(velocities, [[1.0, 0.0], [0.0, 1.0]])
    assert not colliding.any()


def test_zero_restitution_gives_no_velocity_change():
    positions, velocities, radii, colliding = arrays(
        [[0.0, 0.0], [150.0, 0.0]], [[1.0, 0.0], [-1.0, 0.0]], [100.0, 100.0]
    )
    resolve_collisions(positions, velocities, radii, colliding, 0.0)
    np.testing.assert_allclose(velocities, [[1.0, 0.0], [-1.0, 0.0]])
    assert distance(positions) == pytest.approx(200.0)


def test_pairs_resolved_in_ascending_order():
    # Bubble 0 overlaps both 1 and 2. Pair (0, 1) latches bubble 0, so
    # pair (0, 2) is skipped on this tick.
    positions, velocities, radii, colliding = arrays(
        [[0.0, 0.0], [15.0, 0.0], [-15.0, 0.0]],
        [[0.0, 0.0], [-1.0, 0.0], [1.0, 0.0]],
        [10.0, 10.0, 10.0],
    )
    resolve_collisions(positions, velocities, radii, colliding, 0.8)

    np.testing.assert_allclose(positions[2], [-15.0, 0.0])
    np.testing.assert_allclose(velocities[2], [1.0, 0.0])
    assert colliding[0]
    # Pair (1, 2) is apart, but bubble 1 still overlaps bubble 0.
    assert colliding[1]
    # Bubble 2 overlaps bubble 0 but was never resolved.
    assert not colliding[2]


def test_distant_bubble_does_not_clear_latch():
    positions, velocities, radii, colliding = arrays(
        [[0.0, 0.0], [150.0, 0.0], [3000.0, 3000.0]],
        [[-1.0, 0.0], [1.0, 0.0], [0.0, 0.0]],
        [100.0, 100.0, 100.0],
    )
    resolve_collisions(positions, velocities, radii, colliding, 0.8)
    positions += velocities
    velocities_after_first = velocities.copy()

    resolve_collisions(positions, velocities, radii, colliding, 0.8)

    np.testing.assert_array_equal(velocities, velocities_after_first)
    np.testing.assert_array_equal(colliding, [True, True, False])


def test_latch_cleared_only_when_no_partner_overlaps():
    positions, velocities, radii, colliding = arrays(
        [[0.0, 0.0], [150.0, 0.0], [-500.0, 0.0]],
        [[0.0, 0.0], [0.0, 0.0], [0.0, 0.0]],
        [100.0, 100.0, 100.0],
    )
    colliding[:] = True

    resolve_collisions(positions, velocities, radii, colliding, 0.8)

    # 0 and 1 still overlap each other; 2 overlaps nobody.
    np.testing.assert_array_equal(colliding, [True, True, False])
    np.testing.assert_array_equal(velocities, np.zeros((3, 2)))


def test_empty_and_single_particle():
    for count in (0, 1):
        positions = np.zeros((count, 2))
        velocities = np.zeros((count, 2))
        radii = np.full(count, 5.0)
        colliding = np.zeros(count, dtype=np.bool_)
        assert resolve_collisions(positions, velocities, radii, colliding, 0.8) == 0
