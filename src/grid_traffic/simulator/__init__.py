"""
Simulador de tráfico urbano basado en agentes.

Este módulo contiene el motor de simulación que modela:
- Rejilla urbana de calles, intersecciones y celdas bloqueadas
- Semáforos que alternan entre los ejes norte-sur y este-oeste
- Planificación de movimientos por vehículo (paralelizable)
- Resolución centralizada de conflictos en cada paso
"""

from .direction import Direction, Position
from .grid import Grid, CellType
from .traffic_light import TrafficLight
from .vehicle import Vehicle, VehicleIdSequence
from .move_planner import MovePlanner, Intention
from .conflict_resolver import ConflictResolver, OccupancyIndex, AdmissionResult
from .tick_scheduler import TickScheduler, TickPhase
from .traffic_simulator import TrafficSimulator
from .exceptions import SimulationError, ConfigurationError, ExecutionError

__all__ = [
    'Direction',
    'Position',
    'Grid',
    'CellType',
    'TrafficLight',
    'Vehicle',
    'VehicleIdSequence',
    'MovePlanner',
    'Intention',
    'ConflictResolver',
    'OccupancyIndex',
    'AdmissionResult',
    'TickScheduler',
    'TickPhase',
    'TrafficSimulator',
    'SimulationError',
    'ConfigurationError',
    'ExecutionError'
]
