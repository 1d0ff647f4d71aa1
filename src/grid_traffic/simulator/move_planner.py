"""
Planificación de movimientos de los vehículos.

El planificador decide, para un vehículo, a qué celda intenta moverse en
el paso actual. Es una función pura respecto de los demás vehículos: solo
lee la rejilla, los semáforos y el propio vehículo, sin modificar nada.
Eso permite ejecutarlo en paralelo sobre particiones disjuntas.

Orden de prioridad (gana el primero que encuentra movimiento):
1. Avanzar si la celda de adelante es transitable.
2. En intersección con rojo: giro forzado a una perpendicular con verde.
3. En intersección con verde (o sin semáforo): avanzar, con una
   probabilidad de giro voluntario a una perpendicular.
4. Bloqueado en intersección: probar las direcciones en orden aleatorio
   (sin retroceder) y, como último recurso, retroceder.
5. Si nada funciona, el vehículo queda detenido.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

import numpy as np

from .direction import Direction, Position
from .grid import Grid
from .traffic_light import TrafficLight
from .vehicle import Vehicle

ALL_DIRECTIONS = tuple(Direction)


@dataclass(frozen=True)
class Intention:
    """
    Resultado propuesto para un vehículo en el paso actual.

    Si `stopped` es True, `target` es la posición actual del vehículo.
    """
    vehicle: Vehicle
    target: Position
    direction: Direction
    stopped: bool = False

    @classmethod
    def move_to(cls, vehicle: Vehicle, target: Position, direction: Direction) -> "Intention":
        return cls(vehicle, target, direction, stopped=False)

    @classmethod
    def stop_at(cls, vehicle: Vehicle) -> "Intention":
        return cls(vehicle, vehicle.position, vehicle.direction, stopped=True)


class MovePlanner:
    """
    Decide la intención de movimiento de cada vehículo.
    """

    def __init__(self, grid: Grid, traffic_lights: Dict[Position, TrafficLight],
                 direction_change_prob: float):
        """
        Inicializa el planificador.

        Args:
            grid: Rejilla urbana
            traffic_lights: Semáforos por posición de intersección
                            (puede estar vacío: intersecciones sin semáforo)
            direction_change_prob: Probabilidad de giro voluntario en
                                   intersecciones con verde
        """
        self.grid = grid
        self.traffic_lights = traffic_lights
        self.direction_change_prob = direction_change_prob

    def plan(self, vehicle: Vehicle, rng: np.random.Generator) -> Intention:
        """
        Calcula la intención de un vehículo.

        Args:
            vehicle: Vehículo a planificar (no se modifica)
            rng: Generador aleatorio del trabajador que planifica

        Returns:
            Intention: Movimiento propuesto o detención en la posición actual
        """
        position = vehicle.position
        direction = vehicle.direction
        at_intersection = self.grid.is_intersection(position)
        light = self.traffic_lights.get(position) if at_intersection else None

        chosen: Optional[Direction] = None
        forward = position.move(direction)

        if self.grid.is_traversable(forward):
            if not at_intersection:
                chosen = direction
            elif light is not None and not light.can_pass(direction):
                chosen = self._forced_turn(position, direction, light)
            else:
                chosen = self._maybe_turn(position, direction, rng)

        if chosen is None and at_intersection:
            chosen = self._find_alternative(position, direction, light, rng)

        if chosen is None:
            return Intention.stop_at(vehicle)

        return Intention.move_to(vehicle, position.move(chosen), chosen)

    def plan_partition(self, vehicles: Iterable[Vehicle],
                       rng: np.random.Generator) -> List[Intention]:
        """Planifica una partición de vehículos en orden, con un mismo generador."""
        return [self.plan(vehicle, rng) for vehicle in vehicles]

    def _forced_turn(self, position: Position, direction: Direction,
                     light: TrafficLight) -> Optional[Direction]:
        """Rojo en la dirección actual: primera perpendicular con verde y libre."""
        for turn in direction.perpendiculars():
            if light.can_pass(turn) and self.grid.is_traversable(position.move(turn)):
                return turn
        return None

    def _maybe_turn(self, position: Position, direction: Direction,
                    rng: np.random.Generator) -> Direction:
        """Verde o sin semáforo: avanza, salvo giro voluntario exitoso."""
        if rng.random() < self.direction_change_prob:
            perpendiculars = direction.perpendiculars()
            if perpendiculars:
                turn = perpendiculars[rng.integers(len(perpendiculars))]
                if self.grid.is_traversable(position.move(turn)):
                    return turn
        return direction

    def _find_alternative(self, position: Position, direction: Direction,
                          light: Optional[TrafficLight],
                          rng: np.random.Generator) -> Optional[Direction]:
        """Bloqueado en intersección: cualquier salida permitida, retroceder al final."""
        reverse = direction.opposite()

        for index in rng.permutation(len(ALL_DIRECTIONS)):
            candidate = ALL_DIRECTIONS[index]
            if candidate == reverse:
                continue
            if self._is_open(position, candidate, light):
                return candidate

        if self._is_open(position, reverse, light):
            return reverse
        return None

    def _is_open(self, position: Position, direction: Direction,
                 light: Optional[TrafficLight]) -> bool:
        if light is not None and not light.can_pass(direction):
            return False
        return self.grid.is_traversable(position.move(direction))
