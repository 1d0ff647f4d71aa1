"""
Modelo de semáforo de intersección.

Cada semáforo habilita un eje completo (norte-sur o este-oeste) y
alterna de eje cada `cycle_duration` pasos, sin depender del tráfico.
"""

import numbers
from typing import Tuple

from .direction import Direction, Position
from .exceptions import ConfigurationError


class TrafficLight:
    """
    Representa el semáforo de una intersección.

    El semáforo arranca con el eje norte-sur en verde. En cada paso
    incrementa su contador; al llegar a la duración del ciclo lo
    reinicia y cambia el eje habilitado.
    """

    def __init__(self, position: Position, cycle_duration: int):
        """
        Inicializa un semáforo.

        Args:
            position: Posición de la intersección que controla
            cycle_duration: Duración de cada fase en pasos de simulación

        Raises:
            ConfigurationError: Si la duración no es un entero positivo
        """
        if isinstance(cycle_duration, bool) or not isinstance(cycle_duration, numbers.Integral) \
                or cycle_duration <= 0:
            raise ConfigurationError(
                f"Duración de ciclo inválida: {cycle_duration!r} (debe ser entero positivo)"
            )

        self.position = position
        self.cycle_duration = int(cycle_duration)

        # Estado
        self.allowed_direction = Direction.NORTH
        self.cycle_counter = 0

        # Estadísticas
        self.total_toggles = 0

    def update(self):
        """Avanza un paso; cambia de eje al completar el ciclo."""
        self.cycle_counter += 1
        if self.cycle_counter >= self.cycle_duration:
            self.cycle_counter = 0
            self._toggle_axis()

    def _toggle_axis(self):
        """Alterna el eje habilitado entre norte-sur y este-oeste."""
        if self.allowed_direction.is_vertical():
            self.allowed_direction = Direction.EAST
        else:
            self.allowed_direction = Direction.NORTH
        self.total_toggles += 1

    def can_pass(self, direction: Direction) -> bool:
        """
        Determina si un vehículo puede cruzar en la dirección dada.

        Pasa si la dirección coincide con la habilitada o es su opuesta
        (mismo eje).
        """
        return (direction == self.allowed_direction or
                direction == self.allowed_direction.opposite())

    def get_allowed_axis(self) -> Tuple[Direction, Direction]:
        """Retorna el par de direcciones con verde."""
        return self.allowed_direction, self.allowed_direction.opposite()

    def get_time_until_green(self, direction: Direction) -> int:
        """
        Calcula cuántos pasos faltan para que una dirección tenga verde.

        Args:
            direction: Dirección a consultar

        Returns:
            int: Pasos hasta el próximo verde (0 si ya está en verde)
        """
        if self.can_pass(direction):
            return 0
        return self.cycle_duration - self.cycle_counter

    def reset(self):
        """Reinicia el semáforo al inicio del ciclo (norte-sur en verde)."""
        self.allowed_direction = Direction.NORTH
        self.cycle_counter = 0
        self.total_toggles = 0

    def get_status_string(self) -> str:
        """
        Retorna una representación legible del estado actual.

        Returns:
            str: String con estado formateado
        """
        axis = "NORTE-SUR" if self.allowed_direction.is_vertical() else "ESTE-OESTE"
        return (f"Semáforo {self.position} | Verde: {axis} | "
                f"Ciclo: {self.cycle_counter}/{self.cycle_duration} | "
                f"Cambios: {self.total_toggles}")

    def __str__(self) -> str:
        return f"TrafficLight({self.position}, allowed={self.allowed_direction})"

    def __repr__(self) -> str:
        return (f"TrafficLight(position={self.position}, "
                f"allowed={self.allowed_direction.name}, "
                f"counter={self.cycle_counter}/{self.cycle_duration})")
