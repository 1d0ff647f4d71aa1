"""
Tests para la planificación de movimientos (MovePlanner).
"""

import numpy as np
import pytest

from grid_traffic.simulator import Direction, Grid, MovePlanner, Position, TrafficLight, Vehicle


PLUS_GRID = "#.#\n.+.\n#.#"
DEAD_END_GRID = "###\n.+#\n###"
CORNER_GRID = "#.#\n.+#\n#.#"
HALL_GRID = "###\n.+.\n###"
RING_GRID = (
    "#####\n"
    "#...#\n"
    "#.+.#\n"
    "#...#\n"
    "#####"
)

CENTER = Position(1, 1)


def lights_for(grid: Grid, cycle_duration: int = 10):
    """Un semáforo por intersección."""
    return {pos: TrafficLight(pos, cycle_duration) for pos in grid.get_intersections()}


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


class TestMovePlannerStreets:
    """Tests de planificación fuera de intersecciones."""

    def test_forward_on_street(self, rng):
        """Test de avance en calle libre."""
        grid = Grid.from_text("...")
        planner = MovePlanner(grid, {}, direction_change_prob=1.0)
        vehicle = Vehicle(1, Position(0, 0), Direction.EAST)

        intention = planner.plan(vehicle, rng)

        assert not intention.stopped
        assert intention.target == Position(1, 0)
        assert intention.direction == Direction.EAST

    def test_blocked_street_stops(self, rng):
        """Test de calle bloqueada: sin giro ni retroceso fuera de intersección."""
        grid = Grid.from_text(".#")
        planner = MovePlanner(grid, {}, direction_change_prob=0.0)
        vehicle = Vehicle(1, Position(0, 0), Direction.EAST)

        intention = planner.plan(vehicle, rng)

        assert intention.stopped
        assert intention.target == Position(0, 0)
        assert intention.direction == Direction.EAST

    def test_single_cell_grid_always_stops(self, rng):
        """Test de rejilla 1x1: todo movimiento sale de la rejilla."""
        grid = Grid.from_text(".")
        planner = MovePlanner(grid, {}, direction_change_prob=0.5)

        for direction in Direction:
            vehicle = Vehicle(1, Position(0, 0), direction)
            for _ in range(20):
                assert planner.plan(vehicle, rng).stopped

    def test_no_turns_outside_intersections(self, rng):
        """Test de corredor sin intersecciones con probabilidad de giro 1.0."""
        grid = Grid.from_text("........")
        planner = MovePlanner(grid, {}, direction_change_prob=1.0)

        for x in range(7):
            vehicle = Vehicle(1, Position(x, 0), Direction.EAST)
            intention = planner.plan(vehicle, rng)
            assert intention.direction == Direction.EAST
            assert intention.target == Position(x + 1, 0)

    def test_plan_does_not_mutate_vehicle(self, rng):
        """Test de que planificar no modifica el vehículo."""
        grid = Grid.from_text("...")
        planner = MovePlanner(grid, {}, direction_change_prob=0.0)
        vehicle = Vehicle(1, Position(0, 0), Direction.EAST)

        planner.plan(vehicle, rng)

        assert vehicle.position == Position(0, 0)
        assert vehicle.direction == Direction.EAST
        assert vehicle.total_moves == 0
        assert not vehicle.stopped


class TestMovePlannerIntersections:
    """Tests de planificación en intersecciones."""

    def test_red_light_forces_turn(self, rng):
        """Test de giro forzado a la perpendicular con verde."""
        grid = Grid.from_text(PLUS_GRID)
        planner = MovePlanner(grid, lights_for(grid), direction_change_prob=0.0)
        # Verde norte-sur: el vehículo que va al este debe girar
        vehicle = Vehicle(1, CENTER, Direction.EAST)

        intention = planner.plan(vehicle, rng)

        assert intention.direction == Direction.NORTH
        assert intention.target == Position(1, 0)

    def test_green_light_goes_forward(self, rng):
        """Test de avance con verde y sin giro voluntario."""
        grid = Grid.from_text(PLUS_GRID)
        planner = MovePlanner(grid, lights_for(grid), direction_change_prob=0.0)
        vehicle = Vehicle(1, CENTER, Direction.SOUTH)

        intention = planner.plan(vehicle, rng)

        assert intention.direction == Direction.SOUTH
        assert intention.target == Position(1, 2)

    def test_green_light_voluntary_turn(self, rng):
        """Test de giro voluntario con probabilidad 1.0."""
        grid = Grid.from_text(PLUS_GRID)
        planner = MovePlanner(grid, lights_for(grid), direction_change_prob=1.0)
        vehicle = Vehicle(1, CENTER, Direction.NORTH)

        for _ in range(20):
            intention = planner.plan(vehicle, rng)
            assert intention.direction in (Direction.EAST, Direction.WEST)
            assert intention.target == CENTER.move(intention.direction)

    def test_red_light_with_no_exit_stops(self, rng):
        """Test de rojo sin perpendiculares ni alternativas: queda detenido."""
        grid = Grid.from_text(HALL_GRID)
        lights = lights_for(grid, cycle_duration=1)
        planner = MovePlanner(grid, lights, direction_change_prob=0.0)
        vehicle = Vehicle(1, CENTER, Direction.EAST)

        assert planner.plan(vehicle, rng).stopped

        # Al cambiar el semáforo, el eje este-oeste queda habilitado
        lights[CENTER].update()
        intention = planner.plan(vehicle, rng)
        assert intention.direction == Direction.EAST
        assert intention.target == Position(2, 1)

    def test_alternative_never_reverses_when_other_exit_exists(self, rng):
        """Test de búsqueda de alternativa sin retroceder."""
        grid = Grid.from_text(CORNER_GRID)
        planner = MovePlanner(grid, {}, direction_change_prob=0.0)
        vehicle = Vehicle(1, CENTER, Direction.EAST)

        for _ in range(30):
            intention = planner.plan(vehicle, rng)
            assert intention.direction in (Direction.NORTH, Direction.SOUTH)

    def test_reverse_as_last_resort(self, rng):
        """Test de retroceso en intersección sin salida y sin semáforo."""
        grid = Grid.from_text(DEAD_END_GRID)
        planner = MovePlanner(grid, {}, direction_change_prob=0.0)
        vehicle = Vehicle(1, CENTER, Direction.EAST)

        intention = planner.plan(vehicle, rng)

        assert intention.direction == Direction.WEST
        assert intention.target == Position(0, 1)

    def test_reverse_requires_green(self, rng):
        """Test de retroceso bloqueado por el semáforo."""
        grid = Grid.from_text(DEAD_END_GRID)
        planner = MovePlanner(grid, lights_for(grid), direction_change_prob=0.0)
        vehicle = Vehicle(1, CENTER, Direction.EAST)

        assert planner.plan(vehicle, rng).stopped

    def test_unsignalled_intersection_always_moves(self):
        """Test de intersección sin semáforo rodeada de calles: nunca se detiene."""
        grid = Grid.from_text(RING_GRID)
        planner = MovePlanner(grid, {}, direction_change_prob=0.5)
        center = Position(2, 2)

        for seed in range(25):
            rng = np.random.default_rng(seed)
            for direction in Direction:
                intention = planner.plan(Vehicle(1, center, direction), rng)
                assert not intention.stopped
                assert grid.is_traversable(intention.target)


class TestPlanPartition:
    """Tests de planificación por partición."""

    def test_one_intention_per_vehicle_in_order(self, rng):
        """Test de orden y cantidad de intenciones."""
        grid = Grid.from_text("....")
        planner = MovePlanner(grid, {}, direction_change_prob=0.0)
        vehicles = [
            Vehicle(1, Position(0, 0), Direction.EAST),
            Vehicle(2, Position(3, 0), Direction.EAST),
            Vehicle(3, Position(2, 0), Direction.WEST),
        ]

        intentions = planner.plan_partition(vehicles, rng)

        assert [i.vehicle.id for i in intentions] == [1, 2, 3]
        assert not intentions[0].stopped
        assert intentions[1].stopped
        assert intentions[2].target == Position(1, 0)

    def test_same_seed_same_plan(self):
        """Test de determinismo con la misma semilla."""
        grid = Grid.from_text(RING_GRID)
        planner = MovePlanner(grid, {}, direction_change_prob=0.5)
        vehicles = [Vehicle(i, Position(2, 2), d) for i, d in enumerate(Direction, start=1)]

        first = planner.plan_partition(vehicles, np.random.default_rng(99))
        second = planner.plan_partition(vehicles, np.random.default_rng(99))

        assert [(i.target, i.direction) for i in first] == \
               [(i.target, i.direction) for i in second]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
