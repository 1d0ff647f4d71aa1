"""
Resolución de conflictos y confirmación de movimientos.

Después de la planificación (posiblemente paralela), un único hilo toma
todas las intenciones del paso y decide cuáles se admiten. Es el único
lugar donde se modifican los vehículos, y reconstruye desde cero el
índice de ocupación.

Política de admisión: las intenciones de movimiento se agrupan por
(celda destino, dirección elegida) y en cada grupo se admite exactamente
un vehículo, el primero del grupo. El límite es por grupo y no por celda:
dos vehículos que llegan a la misma celda desde direcciones distintas
pueden entrar ambos en el mismo paso, aunque `max_vehicles_per_cell`
sugiera una ocupación máxima. Ese valor solo se usa para diagnosticar
celdas sobrecargadas, nunca para cambiar la admisión.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Sequence, Tuple

from .direction import Direction, Position
from .move_planner import Intention
from .vehicle import Vehicle

logger = logging.getLogger(__name__)

GroupKey = Tuple[Position, Direction]


class OccupancyIndex:
    """
    Índice posición → vehículos presentes en esa celda.

    Es una caché derivada de las posiciones de los vehículos: se
    construye nueva en cada paso y nunca se actualiza incrementalmente.
    """

    def __init__(self):
        self._cells: Dict[Position, List[Vehicle]] = defaultdict(list)

    @classmethod
    def from_vehicles(cls, vehicles: Iterable[Vehicle]) -> "OccupancyIndex":
        """Construye el índice a partir de las posiciones actuales."""
        index = cls()
        for vehicle in vehicles:
            index.add(vehicle.position, vehicle)
        return index

    def add(self, position: Position, vehicle: Vehicle):
        self._cells[position].append(vehicle)

    def get(self, position: Position) -> List[Vehicle]:
        """Retorna una copia de los vehículos en la celda (vacía si no hay)."""
        return list(self._cells.get(position, ()))

    def count(self, position: Position) -> int:
        return len(self._cells.get(position, ()))

    def positions(self) -> List[Position]:
        return list(self._cells.keys())

    def total(self) -> int:
        """Número total de vehículos indexados."""
        return sum(len(vehicles) for vehicles in self._cells.values())

    def __contains__(self, position: Position) -> bool:
        return position in self._cells

    def __len__(self) -> int:
        return len(self._cells)

    def __iter__(self) -> Iterator[Tuple[Position, List[Vehicle]]]:
        return iter(self._cells.items())

    def __repr__(self) -> str:
        return f"OccupancyIndex(cells={len(self)}, vehicles={self.total()})"


@dataclass
class AdmissionResult:
    """Clasificación de las intenciones de un paso."""
    admitted: List[Intention] = field(default_factory=list)
    denied: List[Intention] = field(default_factory=list)
    stopped: List[Intention] = field(default_factory=list)


class ConflictResolver:
    """
    Arbitra las intenciones de un paso y confirma el nuevo estado.
    """

    def __init__(self, max_vehicles_per_cell: int = 2):
        """
        Args:
            max_vehicles_per_cell: Ocupación nominal por celda (un carril por
                                   sentido). Solo se usa para diagnóstico.
        """
        self.max_vehicles_per_cell = max_vehicles_per_cell

    @staticmethod
    def group_intentions(intentions: Iterable[Intention]) -> Dict[GroupKey, List[Intention]]:
        """
        Agrupa las intenciones de movimiento por (destino, dirección).

        Los grupos y sus miembros conservan el orden de llegada.
        """
        groups: Dict[GroupKey, List[Intention]] = {}
        for intention in intentions:
            if intention.stopped:
                continue
            groups.setdefault((intention.target, intention.direction), []).append(intention)
        return groups

    def select_admissions(self, intentions: Sequence[Intention]) -> AdmissionResult:
        """
        Decide qué intenciones se admiten, sin modificar nada.

        Es una función pura del conjunto de intenciones: repetirla sobre
        las mismas intenciones da el mismo resultado.

        Returns:
            AdmissionResult: Admitidas (una por grupo), denegadas y detenidas
        """
        result = AdmissionResult(stopped=[i for i in intentions if i.stopped])

        for group in self.group_intentions(intentions).values():
            result.admitted.append(group[0])
            result.denied.extend(group[1:])

        return result

    def resolve(self, intentions: Sequence[Intention]) -> OccupancyIndex:
        """
        Confirma las intenciones de un paso.

        1. Las detenciones se aplican primero.
        2. En cada grupo (destino, dirección) el primero se mueve y el
           resto queda detenido en su posición actual.

        Args:
            intentions: Conjunto completo de intenciones del paso

        Returns:
            OccupancyIndex: Índice reconstruido con las posiciones finales
        """
        result = self.select_admissions(intentions)
        occupancy = OccupancyIndex()

        for intention in result.stopped:
            intention.vehicle.stop()
            occupancy.add(intention.vehicle.position, intention.vehicle)

        for intention in result.admitted:
            vehicle = intention.vehicle
            if intention.direction != vehicle.direction:
                vehicle.set_direction(intention.direction)
            vehicle.move(intention.target)
            occupancy.add(intention.target, vehicle)

        for intention in result.denied:
            intention.vehicle.stop()
            occupancy.add(intention.vehicle.position, intention.vehicle)

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("Resolución: admitidos=%d denegados=%d detenidos=%d sobrecargadas=%d",
                         len(result.admitted), len(result.denied), len(result.stopped),
                         self.count_overflowing_cells(occupancy))

        return occupancy

    def count_overflowing_cells(self, occupancy: OccupancyIndex) -> int:
        """Cuenta las celdas con más vehículos que `max_vehicles_per_cell`."""
        return sum(1 for _, vehicles in occupancy
                   if len(vehicles) > self.max_vehicles_per_cell)
