"""Unit tests for terrain.py module."""

import numpy as np
import pytest

from drift.config import DriftConfig
from drift.terrain import (
    Action,
    SimulationState,
    Terrain,
    apply_action,
    optimal_action,
    plain_step,
)


def create_state(terrain=Terrain.ROAD, agent=(0.5, 0.5), target=(0.9, 0.9), **kwargs):
    """Helper function to create a simulation state."""
    return SimulationState(agent_pos=np.array(agent), target_pos=np.array(target), terrain=terrain, **kwargs)


class TestSimulationState:
    """Test SimulationState validation and lifecycle helpers."""

    def test_out_of_range_position(self):
        """Test that coordinates outside the unit square are rejected."""
        with pytest.raises(ValueError, match=r"must lie in \[0, 1\]"):
            create_state(agent=(1.2, 0.5))

    def test_wrong_shape(self):
        """Test that positions need exactly two coordinates."""
        with pytest.raises(ValueError, match="exactly 2 coordinates"):
            create_state(target=(0.1, 0.2, 0.3))

    def test_terrain_from_string(self):
        """Test that terrain names are coerced to Terrain members."""
        assert create_state(terrain="ice").terrain is Terrain.ICE

    def test_distance(self):
        """Test Euclidean distance to target."""
        state = create_state(agent=(0.0, 0.0), target=(0.3, 0.4))
        assert state.distance_to_target() == pytest.approx(0.5)

    def test_set_terrain_resets_memory(self):
        """Test that a terrain change clears stuck count and velocity."""
        state = create_state(terrain=Terrain.SAND, stuck_count=2, velocity=np.array([0.01, 0.0]))
        state.set_terrain(Terrain.ICE)
        assert state.terrain is Terrain.ICE
        assert state.stuck_count == 0
        np.testing.assert_array_equal(state.velocity, [0.0, 0.0])

    def test_set_same_terrain_keeps_memory(self):
        """Test that re-setting the current terrain changes nothing."""
        state = create_state(terrain=Terrain.ICE, velocity=np.array([0.01, 0.0]), stuck_count=1)
        state.set_terrain(Terrain.ICE)
        assert state.stuck_count == 1
        np.testing.assert_array_equal(state.velocity, [0.01, 0.0])

    def test_reset_positions(self, config):
        """Test that reset places agent and target in opposite corners and clears memory."""
        state = create_state(terrain=Terrain.SAND, last_action=Action.UP, stuck_count=3)
        state.reset_positions(np.random.default_rng(0), config)
        assert np.all(state.agent_pos <= config.reset_extent)
        assert np.all(state.target_pos >= 1.0 - config.reset_extent)
        assert state.last_action is None
        assert state.stuck_count == 0
        np.testing.assert_array_equal(state.velocity, [0.0, 0.0])

    def test_copy_is_independent(self):
        """Test that copy() does not share arrays."""
        state = create_state()
        clone = state.copy()
        clone.agent_pos[0] = 0.0
        assert state.agent_pos[0] == 0.5


class TestRoadAndGrass:
    """Test memoryless terrains."""

    def test_road_full_speed(self, config):
        """Test that road moves the full base speed."""
        state = apply_action(create_state(), Action.UP, config)
        np.testing.assert_allclose(state.agent_pos, [0.5, 0.5 + config.speed])
        assert state.last_action is Action.UP

    @pytest.mark.parametrize(
        "action,expected",
        [(Action.UP, (0.5, 0.52)), (Action.DOWN, (0.5, 0.48)), (Action.LEFT, (0.48, 0.5)), (Action.RIGHT, (0.52, 0.5))],
    )
    def test_action_directions(self, config, action, expected):
        """Test the displacement of every action on road."""
        state = apply_action(create_state(), action, config)
        np.testing.assert_allclose(state.agent_pos, expected)

    def test_grass_damped(self, config):
        """Test that grass applies constant damping."""
        state = apply_action(create_state(terrain=Terrain.GRASS), Action.RIGHT, config)
        np.testing.assert_allclose(state.agent_pos, [0.5 + config.speed * config.grass_damping, 0.5])

    def test_grass_no_memory(self, config):
        """Test that repeated actions on grass keep the same speed."""
        state = create_state(terrain=Terrain.GRASS)
        for _ in range(5):
            apply_action(state, Action.RIGHT, config)
        np.testing.assert_allclose(state.agent_pos[0], 0.5 + 5 * config.speed * config.grass_damping)
        assert state.stuck_count == 0


class TestSand:
    """Test the sand resistance model."""

    def test_third_repeat_is_stuck(self, config):
        """Test that the third consecutive repeat yields zero displacement."""
        state = create_state(terrain=Terrain.SAND, agent=(0.5, 0.2))
        steps = []
        for _ in range(4):
            before = state.agent_pos.copy()
            apply_action(state, Action.UP, config)
            steps.append(float(np.linalg.norm(state.agent_pos - before)))

        assert steps[0] == pytest.approx(config.speed * config.sand_change_factor)
        assert steps[1] == pytest.approx(config.speed * config.sand_repeat_factor)
        assert steps[2] == pytest.approx(config.speed * config.sand_repeat_factor)
        assert steps[3] == 0.0
        assert state.stuck_count == 3

    def test_alternation_never_stuck(self, config):
        """Test that alternating actions never trigger the stuck penalty."""
        state = create_state(terrain=Terrain.SAND, agent=(0.2, 0.2))
        for i in range(10):
            before = state.agent_pos.copy()
            apply_action(state, Action.UP if i % 2 == 0 else Action.RIGHT, config)
            assert state.stuck_count == 0
            assert np.linalg.norm(state.agent_pos - before) == pytest.approx(config.speed * config.sand_change_factor)

    def test_change_resets_counter(self, config):
        """Test that changing direction clears an accumulated stuck count."""
        state = create_state(terrain=Terrain.SAND)
        for _ in range(3):
            apply_action(state, Action.LEFT, config)
        assert state.stuck_count == 2
        apply_action(state, Action.DOWN, config)
        assert state.stuck_count == 0


class TestIce:
    """Test the ice momentum model."""

    def test_velocity_filter_exact(self, config):
        """Test v' = v(1-f) + requested*f for one tick."""
        f = config.ice_friction
        v_prev = np.array([0.01, -0.004])
        state = create_state(terrain=Terrain.ICE, velocity=v_prev.copy())
        apply_action(state, Action.UP, config)
        expected = v_prev * (1.0 - f) + np.array([0.0, config.speed]) * f
        np.testing.assert_allclose(state.velocity, expected)
        np.testing.assert_allclose(state.agent_pos, np.array([0.5, 0.5]) + expected)

    def test_reversal_slower_than_road(self, config):
        """Test that a one-tick reversal moves the agent less than on road."""
        ice = create_state(terrain=Terrain.ICE, velocity=np.array([config.speed, 0.0]), last_action=Action.RIGHT)
        road = create_state(terrain=Terrain.ROAD, last_action=Action.RIGHT)

        apply_action(ice, Action.LEFT, config)
        apply_action(road, Action.LEFT, config)

        ice_progress = 0.5 - ice.agent_pos[0]
        road_progress = 0.5 - road.agent_pos[0]
        assert ice_progress < road_progress

    def test_velocity_builds_up(self, config):
        """Test that repeated requests converge toward full speed."""
        state = create_state(terrain=Terrain.ICE, agent=(0.0, 0.5))
        for _ in range(60):
            apply_action(state, Action.RIGHT, config)
        assert state.velocity[0] == pytest.approx(config.speed, rel=0.01)


class TestClamping:
    """Test that the agent never leaves the unit square."""

    @pytest.mark.parametrize("terrain", list(Terrain))
    def test_random_walk_stays_in_bounds(self, config, terrain):
        """Test clamping for long random action sequences on every terrain."""
        rng = np.random.default_rng(42)
        state = create_state(terrain=terrain, agent=(0.01, 0.99))
        for _ in range(500):
            apply_action(state, Action(int(rng.integers(4))), config)
            assert np.all(state.agent_pos >= 0.0)
            assert np.all(state.agent_pos <= 1.0)

    @pytest.mark.parametrize("terrain", list(Terrain))
    def test_push_into_wall(self, config, terrain):
        """Test that pushing into a wall pins the coordinate at the boundary."""
        state = create_state(terrain=terrain, agent=(0.0, 0.5))
        for _ in range(20):
            apply_action(state, Action.LEFT, config)
        assert state.agent_pos[0] == 0.0


class TestHelpers:
    """Test plain_step and optimal_action."""

    def test_plain_step_ignores_terrain(self, config):
        """Test that plain_step moves full speed even on sand and leaves memory alone."""
        state = create_state(terrain=Terrain.SAND)
        for _ in range(4):
            plain_step(state, Action.UP, config)
        np.testing.assert_allclose(state.agent_pos, [0.5, 0.5 + 4 * config.speed])
        assert state.last_action is None
        assert state.stuck_count == 0

    @pytest.mark.parametrize(
        "agent,target,expected",
        [
            ((0.1, 0.5), (0.9, 0.6), Action.RIGHT),
            ((0.9, 0.5), (0.1, 0.6), Action.LEFT),
            ((0.5, 0.1), (0.6, 0.9), Action.UP),
            ((0.5, 0.9), (0.6, 0.1), Action.DOWN),
        ],
    )
    def test_optimal_action(self, agent, target, expected):
        """Test that direct pursuit picks the dominant axis."""
        assert optimal_action(create_state(agent=agent, target=target)) is expected

    def test_config_rejects_bad_friction(self):
        """Test that ice friction outside (0, 1] is rejected."""
        with pytest.raises(ValueError, match="ice_friction"):
            DriftConfig(ice_friction=0.0)
