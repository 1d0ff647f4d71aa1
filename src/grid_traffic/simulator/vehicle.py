"""
Modelo de vehículo (agente) de la simulación.

El vehículo es un registro mutable: posición, dirección, si quedó
detenido en el último paso y cuántos movimientos realizó. Solo la fase
de resolución de conflictos lo modifica; la planificación solo lo lee.
"""

import itertools
import threading

from .direction import Direction, Position


class VehicleIdSequence:
    """
    Secuencia monótona de IDs de vehículo.

    Cada simulación tiene su propia secuencia, de modo que dos
    simulaciones en el mismo proceso numeran sus vehículos desde 1.
    """

    def __init__(self, start: int = 1):
        self._counter = itertools.count(start)
        self._lock = threading.Lock()

    def next_id(self) -> int:
        with self._lock:
            return next(self._counter)


class Vehicle:
    """
    Representa un vehículo individual en la simulación.
    """

    def __init__(self, vehicle_id: int, position: Position, direction: Direction):
        """
        Inicializa un vehículo.

        Args:
            vehicle_id: Identificador único dentro de la simulación
            position: Celda inicial (transitable)
            direction: Dirección inicial de movimiento
        """
        self.id = vehicle_id
        self.position = position
        self.direction = direction

        # Estado del último paso
        self.stopped = False

        # Estadísticas
        self.total_moves = 0

    def move(self, new_position: Position):
        """Avanza a la nueva posición y cuenta el movimiento."""
        self.position = new_position
        self.stopped = False
        self.total_moves += 1

    def stop(self):
        """Marca el vehículo como detenido en este paso."""
        self.stopped = True

    def set_direction(self, new_direction: Direction):
        """Cambia la dirección (giro voluntario o forzado)."""
        self.direction = new_direction

    def get_next_position(self) -> Position:
        """Retorna la celda siguiente en la dirección actual."""
        return self.position.move(self.direction)

    def get_statistics(self) -> dict:
        """
        Retorna un diccionario con el estado y estadísticas del vehículo.

        Returns:
            dict: Estadísticas completas
        """
        return {
            'vehicle_id': self.id,
            'x': self.position.x,
            'y': self.position.y,
            'direction': self.direction.name,
            'stopped': self.stopped,
            'total_moves': self.total_moves
        }

    def get_status_string(self) -> str:
        """
        Retorna una representación legible del estado actual.

        Returns:
            str: String con estado formateado
        """
        state = "DETENIDO" if self.stopped else "EN MOVIMIENTO"
        return (f"Vehículo #{self.id} | Estado: {state} | "
                f"Posición: {self.position} | Dirección: {self.direction} | "
                f"Movimientos: {self.total_moves}")

    def __str__(self) -> str:
        return f"Vehicle(#{self.id}, {self.position})"

    def __repr__(self) -> str:
        return (f"Vehicle(id={self.id}, pos={self.position}, "
                f"dir={self.direction.name}, stopped={self.stopped})")
