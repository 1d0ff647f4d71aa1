"""
Direcciones cardinales y posiciones en la rejilla.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Tuple


class Direction(Enum):
    """
    Direcciones de movimiento de los vehículos.

    Cada valor es el desplazamiento unitario (dx, dy). El eje y crece
    hacia el sur (fila siguiente de la rejilla).
    """
    NORTH = (0, -1)
    SOUTH = (0, 1)
    EAST = (1, 0)
    WEST = (-1, 0)

    @property
    def dx(self) -> int:
        return self.value[0]

    @property
    def dy(self) -> int:
        return self.value[1]

    def opposite(self) -> "Direction":
        """Retorna la dirección opuesta (involución)."""
        return _OPPOSITES[self]

    def perpendiculars(self) -> Tuple["Direction", ...]:
        """
        Retorna las dos direcciones ortogonales, en orden fijo.

        Returns:
            Tuple[Direction, ...]: (EAST, WEST) para el eje norte-sur,
            (NORTH, SOUTH) para el eje este-oeste
        """
        return _PERPENDICULARS.get(self, ())

    def is_vertical(self) -> bool:
        """True si la dirección pertenece al eje norte-sur."""
        return self in (Direction.NORTH, Direction.SOUTH)

    def __str__(self) -> str:
        return self.name.lower()


_OPPOSITES = {
    Direction.NORTH: Direction.SOUTH,
    Direction.SOUTH: Direction.NORTH,
    Direction.EAST: Direction.WEST,
    Direction.WEST: Direction.EAST,
}

_PERPENDICULARS = {
    Direction.NORTH: (Direction.EAST, Direction.WEST),
    Direction.SOUTH: (Direction.EAST, Direction.WEST),
    Direction.EAST: (Direction.NORTH, Direction.SOUTH),
    Direction.WEST: (Direction.NORTH, Direction.SOUTH),
}


@dataclass(frozen=True)
class Position:
    """Posición (x, y) en la rejilla. Igualdad por coordenadas."""
    x: int
    y: int

    def move(self, direction: Direction) -> "Position":
        """Retorna una nueva posición desplazada en la dirección dada."""
        return Position(self.x + direction.dx, self.y + direction.dy)

    def __str__(self) -> str:
        return f"({self.x}, {self.y})"
