"""
Motor principal de simulación de tráfico basada en agentes.

Este módulo implementa el simulador que coordina todos los componentes:
rejilla, semáforos, vehículos, planificación de movimientos y
resolución de conflictos, en modo secuencial o paralelo.
"""

import logging
import numbers
import time as timer
from typing import Dict, List, Optional, Tuple

import numpy as np

from ..utils.config import MetricsConfig, ParallelConfig, SimulatorConfig
from ..utils.metrics import SimulationMetrics
from .conflict_resolver import ConflictResolver, OccupancyIndex
from .direction import Direction, Position
from .exceptions import ConfigurationError
from .grid import Grid
from .move_planner import MovePlanner
from .tick_scheduler import TickScheduler
from .traffic_light import TrafficLight
from .vehicle import Vehicle, VehicleIdSequence

logger = logging.getLogger(__name__)


class TrafficSimulator:
    """
    Motor principal de simulación de tráfico urbano.

    Avanza una población fija de vehículos sobre una rejilla, paso a
    paso, respetando los semáforos de las intersecciones, y recolecta
    métricas de flujo y congestión.
    """

    def __init__(self, grid: Grid,
                 vehicle_count: int = SimulatorConfig.VEHICLE_COUNT,
                 cycle_duration: int = SimulatorConfig.TRAFFIC_LIGHT_CYCLE,
                 direction_change_prob: float = SimulatorConfig.DIRECTION_CHANGE_PROB,
                 num_threads: Optional[int] = None,
                 seed: Optional[int] = None,
                 use_traffic_lights: bool = True,
                 history_limit: Optional[int] = MetricsConfig.HISTORY_LIMIT):
        """
        Inicializa el simulador.

        Args:
            grid: Rejilla urbana ya validada
            vehicle_count: Número de vehículos a simular
            cycle_duration: Duración de cada fase de semáforo (pasos)
            direction_change_prob: Probabilidad de giro voluntario en intersecciones
            num_threads: Hilos para la planificación; None para modo secuencial
            seed: Semilla para la ubicación inicial y los generadores de planificación
            use_traffic_lights: Si es False, las intersecciones no tienen semáforo
            history_limit: Pasos conservados en el historial de métricas (None: todos)

        Raises:
            ConfigurationError: Si algún parámetro es inválido o la rejilla
                                no tiene celdas transitables
        """
        self._validate_configuration(grid, vehicle_count, cycle_duration, direction_change_prob)

        self._grid = grid
        self.cycle_duration = int(cycle_duration)
        self.direction_change_prob = float(direction_change_prob)

        # Semáforos
        self._traffic_lights: Dict[Position, TrafficLight] = {}
        if use_traffic_lights:
            self._initialize_traffic_lights()

        # Vehículos
        self._ids = VehicleIdSequence()
        self._vehicles: List[Vehicle] = []
        placement_seed, planning_seed = np.random.SeedSequence(seed).spawn(2)
        self._initialize_vehicles(int(vehicle_count), np.random.default_rng(placement_seed))
        self._occupancy = OccupancyIndex.from_vehicles(self._vehicles)

        # Motor de pasos
        self._planner = MovePlanner(grid, self._traffic_lights, self.direction_change_prob)
        self._resolver = ConflictResolver(SimulatorConfig.MAX_VEHICLES_PER_CELL)
        self._scheduler = TickScheduler(self._planner, self._resolver,
                                        num_threads=num_threads, seed=planning_seed)

        # Métricas
        self._metrics = SimulationMetrics(history_limit)
        self.current_step = 0

        logger.info("Simulador inicializado: %s, vehículos=%d, semáforos=%d, modo=%s",
                    grid, len(self._vehicles), len(self._traffic_lights),
                    f"paralelo ({num_threads} hilos)" if num_threads else "secuencial")

    @staticmethod
    def _validate_configuration(grid: Grid, vehicle_count: int, cycle_duration: int,
                                direction_change_prob: float):
        """Falla rápido ante cualquier parámetro inválido."""
        if isinstance(vehicle_count, bool) or not isinstance(vehicle_count, numbers.Integral) \
                or vehicle_count <= 0:
            raise ConfigurationError(
                f"Número de vehículos inválido: {vehicle_count!r} (debe ser entero positivo)"
            )
        if isinstance(cycle_duration, bool) or not isinstance(cycle_duration, numbers.Integral) \
                or cycle_duration <= 0:
            raise ConfigurationError(
                f"Duración de ciclo inválida: {cycle_duration!r} (debe ser entero positivo)"
            )
        if isinstance(direction_change_prob, bool) or \
                not isinstance(direction_change_prob, numbers.Real) or \
                not 0.0 <= direction_change_prob <= 1.0:
            raise ConfigurationError(
                f"Probabilidad de cambio de dirección fuera de [0, 1]: {direction_change_prob}"
            )
        if grid.count_traversable() == 0:
            raise ConfigurationError("No hay posiciones transitables en la rejilla")

    def _initialize_traffic_lights(self):
        """Crea un semáforo por intersección."""
        for intersection in self._grid.get_intersections():
            self._traffic_lights[intersection] = TrafficLight(intersection, self.cycle_duration)

    def _initialize_vehicles(self, vehicle_count: int, rng: np.random.Generator):
        """Ubica los vehículos en celdas transitables al azar, con dirección al azar."""
        positions = self._grid.get_traversable_positions()
        directions = list(Direction)

        position_indices = rng.integers(len(positions), size=vehicle_count)
        direction_indices = rng.integers(len(directions), size=vehicle_count)

        for pos_index, dir_index in zip(position_indices, direction_indices):
            vehicle = Vehicle(self._ids.next_id(), positions[pos_index], directions[dir_index])
            self._vehicles.append(vehicle)

    # ------------------------------------------------------------------
    # Consulta
    # ------------------------------------------------------------------

    @property
    def grid(self) -> Grid:
        return self._grid

    @property
    def vehicles(self) -> Tuple[Vehicle, ...]:
        return tuple(self._vehicles)

    @property
    def traffic_lights(self) -> Dict[Position, TrafficLight]:
        return dict(self._traffic_lights)

    @property
    def occupancy(self) -> OccupancyIndex:
        return self._occupancy

    @property
    def metrics(self) -> SimulationMetrics:
        return self._metrics

    @property
    def num_threads(self) -> Optional[int]:
        return self._scheduler.num_threads

    @property
    def is_parallel(self) -> bool:
        return self._scheduler.is_parallel

    # ------------------------------------------------------------------
    # Ciclo de vida
    # ------------------------------------------------------------------

    def step(self):
        """
        Ejecuta un paso de simulación.

        Raises:
            ExecutionError: Si falla la planificación paralela o el simulador fue cerrado
        """
        start = timer.perf_counter()
        self._occupancy = self._scheduler.run_tick(self._vehicles, self._traffic_lights,
                                                   self._metrics)
        self.current_step += 1
        self._metrics.record_step_time((timer.perf_counter() - start) * 1000.0)

    def run(self, steps: int, verbose: bool = False) -> SimulationMetrics:
        """
        Ejecuta la simulación por un número de pasos.

        Args:
            steps: Pasos a ejecutar
            verbose: Si es True, registra el progreso cada
                     SimulatorConfig.VISUALIZATION_INTERVAL pasos

        Returns:
            SimulationMetrics: Métricas al finalizar, con el tiempo total medido
        """
        logger.info("Iniciando simulación: %d pasos", steps)
        start = timer.perf_counter()

        for i in range(steps):
            self.step()

            if verbose and i % SimulatorConfig.VISUALIZATION_INTERVAL == 0:
                logger.info("[Paso %d] detenidos=%d/%d movimientos=%d",
                            self.current_step, self._metrics.stopped_vehicles,
                            self._metrics.total_vehicles, self._metrics.total_moves)

        self._metrics.set_execution_time((timer.perf_counter() - start) * 1000.0)
        logger.info("Simulación completada: %d pasos en %.0f ms",
                    steps, self._metrics.execution_time_ms)
        return self._metrics

    def shutdown(self, grace_period: float = ParallelConfig.SHUTDOWN_GRACE_PERIOD):
        """Libera el pool de trabajadores. El simulador queda inutilizable."""
        self._scheduler.shutdown(grace_period)

    def __enter__(self) -> "TrafficSimulator":
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.shutdown()

    def get_current_state(self) -> Dict:
        """
        Retorna el estado actual completo de la simulación.

        Returns:
            dict: Estado actual
        """
        return {
            'step': self.current_step,
            'mode': 'parallel' if self.is_parallel else 'sequential',
            'num_threads': self.num_threads,
            'metrics': self._metrics.snapshot(),
            'traffic_lights': {
                (pos.x, pos.y): {
                    'allowed_direction': light.allowed_direction.name,
                    'cycle_counter': light.cycle_counter,
                    'toggles': light.total_toggles
                }
                for pos, light in self._traffic_lights.items()
            },
            'occupied_cells': len(self._occupancy)
        }

    def __repr__(self) -> str:
        mode = f"parallel({self.num_threads})" if self.is_parallel else "sequential"
        return (f"TrafficSimulator(grid={self._grid.width}x{self._grid.height}, "
                f"vehicles={len(self._vehicles)}, mode={mode}, step={self.current_step})")
