"""
Modelo de rejilla urbana.

Este módulo implementa el mapa estático donde se mueven los vehículos:
una matriz de celdas (calle, intersección, bloqueada) fija desde su
construcción. También incluye el cargador del formato de texto y una
vista de la rejilla como grafo para calcular estadísticas.
"""

import logging
from enum import Enum
from pathlib import Path
from typing import Dict, List, Sequence

import networkx as nx
import numpy as np

from .direction import Position
from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class CellType(Enum):
    """Tipos de celda, identificados por su símbolo en el archivo."""
    STREET = "."
    INTERSECTION = "+"
    BLOCKED = "#"

    @property
    def symbol(self) -> str:
        return self.value

    def is_traversable(self) -> bool:
        """Calles e intersecciones son transitables."""
        return self in (CellType.STREET, CellType.INTERSECTION)

    @classmethod
    def from_symbol(cls, symbol: str) -> "CellType":
        """
        Obtiene el tipo de celda a partir de su símbolo.

        Raises:
            ConfigurationError: Si el símbolo no corresponde a ningún tipo
        """
        try:
            return cls(symbol)
        except ValueError:
            raise ConfigurationError(f"Símbolo de celda inválido: {symbol!r}") from None


class Grid:
    """
    Rejilla urbana inmutable de ancho x alto celdas.

    Las consultas fuera de los límites nunca fallan: una posición fuera
    de la rejilla se considera bloqueada.
    """

    def __init__(self, rows: Sequence[Sequence[CellType]]):
        """
        Construye la rejilla a partir de filas de tipos de celda.

        Args:
            rows: Filas de la rejilla, todas del mismo largo.
                  La cantidad de filas es el alto; el largo de la primera,
                  el ancho.

        Raises:
            ConfigurationError: Si la rejilla está vacía o no es rectangular
        """
        if not rows or not rows[0]:
            raise ConfigurationError("La rejilla está vacía")

        self.height = len(rows)
        self.width = len(rows[0])

        for y, row in enumerate(rows):
            if len(row) != self.width:
                raise ConfigurationError(
                    f"Fila {y} con {len(row)} celdas (se esperaban {self.width})"
                )

        self._cells = np.array([[cell.symbol for cell in row] for row in rows], dtype="<U1")
        self._traversable = np.isin(self._cells, [CellType.STREET.symbol,
                                                  CellType.INTERSECTION.symbol])
        self._intersection_mask = self._cells == CellType.INTERSECTION.symbol

        # La rejilla no cambia después de construida
        for array in (self._cells, self._traversable, self._intersection_mask):
            array.setflags(write=False)

        ys, xs = np.nonzero(self._intersection_mask)
        self._intersections: List[Position] = [
            Position(int(x), int(y)) for y, x in zip(ys, xs)
        ]

    @classmethod
    def from_text(cls, text: str) -> "Grid":
        """
        Construye una rejilla desde su representación de texto.

        Cada carácter es '.' (calle), '+' (intersección) o '#' (bloqueada).
        Las líneas vacías al final se ignoran.

        Raises:
            ConfigurationError: Si el texto está vacío, tiene filas de distinto
                                largo o contiene símbolos desconocidos
        """
        lines = [line.rstrip("\r") for line in text.split("\n")]
        while lines and not lines[-1]:
            lines.pop()

        rows = [[CellType.from_symbol(symbol) for symbol in line] for line in lines]
        return cls(rows)

    @classmethod
    def from_file(cls, filepath: str) -> "Grid":
        """
        Carga la rejilla desde un archivo de texto.

        Raises:
            FileNotFoundError: Si el archivo no existe
            ConfigurationError: Si el contenido no es una rejilla válida
        """
        path = Path(filepath)
        if not path.exists():
            raise FileNotFoundError(f"No se encontró el archivo: {filepath}")

        grid = cls.from_text(path.read_text(encoding="utf-8"))
        logger.info("Rejilla cargada: %s (%dx%d, %d intersecciones)",
                    path.name, grid.width, grid.height, len(grid._intersections))
        return grid

    def is_valid_position(self, pos: Position) -> bool:
        """Verifica si la posición está dentro de los límites."""
        return 0 <= pos.x < self.width and 0 <= pos.y < self.height

    def is_traversable(self, pos: Position) -> bool:
        """Verifica si la celda es transitable (False fuera de la rejilla)."""
        if not self.is_valid_position(pos):
            return False
        return bool(self._traversable[pos.y, pos.x])

    def is_intersection(self, pos: Position) -> bool:
        """Verifica si la posición es una intersección."""
        if not self.is_valid_position(pos):
            return False
        return bool(self._intersection_mask[pos.y, pos.x])

    def get_cell_type(self, pos: Position) -> CellType:
        """Retorna el tipo de celda; BLOCKED fuera de la rejilla."""
        if not self.is_valid_position(pos):
            return CellType.BLOCKED
        return CellType(self._cells[pos.y, pos.x])

    def get_intersections(self) -> List[Position]:
        """Retorna una copia de las posiciones de intersección (orden por filas)."""
        return list(self._intersections)

    def get_traversable_positions(self) -> List[Position]:
        """Retorna todas las posiciones transitables, recorriendo por filas."""
        ys, xs = np.nonzero(self._traversable)
        return [Position(int(x), int(y)) for y, x in zip(ys, xs)]

    def count_traversable(self) -> int:
        return int(self._traversable.sum())

    def to_graph(self) -> nx.Graph:
        """
        Construye el grafo de celdas transitables.

        Los nodos son posiciones (x, y) y las aristas unen celdas
        transitables vecinas en las cuatro direcciones cardinales.

        Returns:
            nx.Graph: Grafo no dirigido de la red de calles
        """
        graph = nx.grid_2d_graph(self.width, self.height)
        blocked = [(x, y) for (x, y) in graph.nodes if not self._traversable[y, x]]
        graph.remove_nodes_from(blocked)

        for (x, y) in graph.nodes:
            graph.nodes[(x, y)]["intersection"] = bool(self._intersection_mask[y, x])

        return graph

    def get_grid_stats(self) -> Dict:
        """
        Calcula estadísticas de la rejilla.

        Returns:
            dict: Diccionario con estadísticas de la rejilla
        """
        graph = self.to_graph()
        total_cells = self.width * self.height
        traversable = graph.number_of_nodes()

        return {
            'width': self.width,
            'height': self.height,
            'total_cells': total_cells,
            'traversable_cells': traversable,
            'num_intersections': len(self._intersections),
            'street_density': traversable / total_cells,
            'num_components': nx.number_connected_components(graph) if traversable else 0,
            'is_connected': traversable > 0 and nx.is_connected(graph)
        }

    def to_text(self) -> str:
        """Retorna la rejilla con los mismos símbolos del formato de entrada."""
        return "\n".join("".join(row) for row in self._cells)

    def __str__(self) -> str:
        return f"Grid({self.width}x{self.height}, {len(self._intersections)} intersections)"

    def __repr__(self) -> str:
        return (f"Grid(width={self.width}, height={self.height}, "
                f"traversable={self.count_traversable()}, "
                f"intersections={len(self._intersections)})")
