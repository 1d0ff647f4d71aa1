"""
Tests para el módulo de vehículos.
"""

from concurrent.futures import ThreadPoolExecutor

import pytest

from grid_traffic.simulator import Direction, Position, Vehicle, VehicleIdSequence


class TestVehicleIdSequence:
    """Tests para la secuencia de IDs."""

    def test_sequence_starts_at_one(self):
        """Test de numeración desde 1."""
        ids = VehicleIdSequence()

        assert [ids.next_id() for _ in range(3)] == [1, 2, 3]

    def test_independent_sequences(self):
        """Test de que cada secuencia numera por separado."""
        first = VehicleIdSequence()
        second = VehicleIdSequence()

        first.next_id()
        first.next_id()

        assert second.next_id() == 1

    def test_concurrent_ids_are_unique(self):
        """Test de unicidad de IDs pedidos desde varios hilos."""
        ids = VehicleIdSequence()

        with ThreadPoolExecutor(max_workers=4) as executor:
            generated = list(executor.map(lambda _: ids.next_id(), range(1000)))

        assert sorted(generated) == list(range(1, 1001))


class TestVehicle:
    """Tests para la clase Vehicle."""

    def test_vehicle_creation(self):
        """Test de creación de vehículo."""
        vehicle = Vehicle(7, Position(2, 3), Direction.EAST)

        assert vehicle.id == 7
        assert vehicle.position == Position(2, 3)
        assert vehicle.direction == Direction.EAST
        assert not vehicle.stopped
        assert vehicle.total_moves == 0

    def test_move(self):
        """Test de movimiento."""
        vehicle = Vehicle(1, Position(0, 0), Direction.EAST)
        vehicle.stop()

        vehicle.move(Position(1, 0))

        assert vehicle.position == Position(1, 0)
        assert not vehicle.stopped
        assert vehicle.total_moves == 1

    def test_stop(self):
        """Test de detención sin cambiar posición ni contador."""
        vehicle = Vehicle(1, Position(4, 4), Direction.SOUTH)

        vehicle.stop()

        assert vehicle.stopped
        assert vehicle.position == Position(4, 4)
        assert vehicle.total_moves == 0

    def test_direction_and_next_position(self):
        """Test de cambio de dirección y celda siguiente."""
        vehicle = Vehicle(1, Position(2, 2), Direction.NORTH)
        assert vehicle.get_next_position() == Position(2, 1)

        vehicle.set_direction(Direction.WEST)
        assert vehicle.get_next_position() == Position(1, 2)

    def test_get_statistics(self):
        """Test de obtención de estadísticas."""
        vehicle = Vehicle(3, Position(1, 1), Direction.SOUTH)
        vehicle.move(Position(1, 2))

        stats = vehicle.get_statistics()

        assert stats['vehicle_id'] == 3
        assert (stats['x'], stats['y']) == (1, 2)
        assert stats['direction'] == 'SOUTH'
        assert stats['total_moves'] == 1
        assert not stats['stopped']

    def test_status_string(self):
        """Test de representación legible."""
        vehicle = Vehicle(5, Position(0, 0), Direction.EAST)
        vehicle.stop()

        status = vehicle.get_status_string()

        assert "#5" in status
        assert "DETENIDO" in status


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
