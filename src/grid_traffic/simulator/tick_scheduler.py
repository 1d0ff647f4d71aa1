"""
Planificador de pasos de simulación.

Un paso recorre siempre las mismas fases, en orden:

    LIGHTS_UPDATED → PLANS_SUBMITTED → BARRIER → CONFLICTS_RESOLVED → METRICS_UPDATED

Solo la planificación de movimientos corre en paralelo. Los vehículos
se dividen en particiones contiguas y disjuntas, una por trabajador, y
cada trabajador escribe sus intenciones en un buffer propio. El hilo
principal espera a todos los trabajadores (barrera), une los buffers en
orden de partición y ejecuta la resolución de conflictos de forma
secuencial. Si algún trabajador falla, el paso se aborta sin modificar
ningún vehículo.
"""

import logging
import math
import numbers
from concurrent.futures import Future, ThreadPoolExecutor, wait
from enum import Enum
from typing import Dict, List, Optional, Sequence, Union

import numpy as np

from ..utils.config import ParallelConfig
from ..utils.metrics import SimulationMetrics
from .conflict_resolver import ConflictResolver, OccupancyIndex
from .direction import Position
from .exceptions import ConfigurationError, ExecutionError
from .move_planner import Intention, MovePlanner
from .traffic_light import TrafficLight
from .vehicle import Vehicle

logger = logging.getLogger(__name__)


class TickPhase(Enum):
    """Fases de un paso de simulación."""
    IDLE = "idle"
    LIGHTS_UPDATED = "lights_updated"
    PLANS_SUBMITTED = "plans_submitted"
    BARRIER = "barrier"
    CONFLICTS_RESOLVED = "conflicts_resolved"
    METRICS_UPDATED = "metrics_updated"


class TickScheduler:
    """
    Ejecuta pasos completos, paralelizando solo la planificación.

    En modo secuencial (`num_threads=None`) la planificación corre en el
    hilo que llama, con un único generador aleatorio. En modo paralelo
    se crea un pool fijo de `num_threads` trabajadores, reutilizado en
    todos los pasos, y cada partición tiene su propio generador.
    """

    def __init__(self, planner: MovePlanner, resolver: ConflictResolver,
                 num_threads: Optional[int] = None,
                 seed: Union[int, np.random.SeedSequence, None] = None):
        """
        Inicializa el planificador de pasos.

        Args:
            planner: Planificador de movimientos
            resolver: Resolutor de conflictos
            num_threads: Número de trabajadores; None para modo secuencial
            seed: Semilla para los generadores (None: entropía del sistema)

        Raises:
            ConfigurationError: Si num_threads no es un entero positivo
        """
        if num_threads is not None and (isinstance(num_threads, bool) or
                                        not isinstance(num_threads, numbers.Integral) or
                                        num_threads <= 0):
            raise ConfigurationError(
                f"Número de hilos inválido: {num_threads!r} (debe ser entero positivo)"
            )

        self.planner = planner
        self.resolver = resolver
        self.num_threads = int(num_threads) if num_threads is not None else None
        self.phase = TickPhase.IDLE
        self.ticks_completed = 0

        # Un generador independiente por partición; nunca se comparten entre hilos
        if not isinstance(seed, np.random.SeedSequence):
            seed = np.random.SeedSequence(seed)
        streams = seed.spawn(self.num_threads or 1)
        self._rngs = [np.random.default_rng(stream) for stream in streams]

        self._executor: Optional[ThreadPoolExecutor] = None
        if num_threads is not None:
            self._executor = ThreadPoolExecutor(
                max_workers=self.num_threads,
                thread_name_prefix=ParallelConfig.THREAD_NAME_PREFIX
            )

        self._in_flight: List[Future] = []
        self._closed = False

    @property
    def is_parallel(self) -> bool:
        return self._executor is not None

    @property
    def is_closed(self) -> bool:
        return self._closed

    def partition(self, vehicles: Sequence[Vehicle]) -> List[Sequence[Vehicle]]:
        """
        Divide los vehículos en `num_threads` particiones contiguas y disjuntas.

        Cada partición tiene ceil(n / num_threads) vehículos; las últimas
        pueden ser más chicas o vacías.

        Returns:
            List[Sequence[Vehicle]]: Exactamente `num_threads` particiones
        """
        workers = self.num_threads or 1
        chunk_size = math.ceil(len(vehicles) / workers)
        return [vehicles[i * chunk_size:(i + 1) * chunk_size] for i in range(workers)]

    def run_tick(self, vehicles: Sequence[Vehicle],
                 traffic_lights: Dict[Position, TrafficLight],
                 metrics: SimulationMetrics) -> OccupancyIndex:
        """
        Ejecuta un paso completo.

        Un paso abortado no modifica ningún vehículo ni las métricas; los
        semáforos ya avanzaron. Se aborta si falla un trabajador, si el pool
        rechaza las tareas, si se cierra el planificador durante la espera o
        si la espera se interrumpe (KeyboardInterrupt, encadenado como causa).

        Args:
            vehicles: Lista de vehículos de la simulación
            traffic_lights: Semáforos por posición (los mismos que lee el planificador)
            metrics: Métricas a actualizar al final del paso

        Returns:
            OccupancyIndex: Índice de ocupación reconstruido

        Raises:
            ExecutionError: Si el planificador está cerrado o el paso se aborta
        """
        if self._closed:
            raise ExecutionError("El planificador de pasos fue cerrado")

        self.phase = TickPhase.IDLE

        # 1. Semáforos (secuencial, sin dependencias entre ellos)
        for light in traffic_lights.values():
            light.update()
        self.phase = TickPhase.LIGHTS_UPDATED

        # 2-3. Planificación (paralela) y barrera
        intentions = self._plan(vehicles)

        # 4. Resolución de conflictos (secuencial)
        occupancy = self.resolver.resolve(intentions)
        self.phase = TickPhase.CONFLICTS_RESOLVED

        # 5. Métricas
        stopped = sum(1 for vehicle in vehicles if vehicle.stopped)
        total_moves = sum(vehicle.total_moves for vehicle in vehicles)
        metrics.update(len(vehicles), stopped, total_moves)
        self.phase = TickPhase.METRICS_UPDATED

        self.ticks_completed += 1
        logger.debug("Paso %d: detenidos=%d/%d movimientos=%d",
                     self.ticks_completed, stopped, len(vehicles), total_moves)
        return occupancy

    def _plan(self, vehicles: Sequence[Vehicle]) -> List[Intention]:
        """Planifica todos los vehículos y retorna las intenciones en orden."""
        if self._executor is None:
            self.phase = TickPhase.PLANS_SUBMITTED
            intentions = self.planner.plan_partition(vehicles, self._rngs[0])
            self.phase = TickPhase.BARRIER
            return intentions

        futures: List[Future] = []
        try:
            for chunk, rng in zip(self.partition(vehicles), self._rngs):
                if not chunk:
                    continue
                futures.append(self._executor.submit(self.planner.plan_partition, chunk, rng))
        except RuntimeError as exc:
            # El pool rechaza tareas después de shutdown
            raise ExecutionError(f"El pool rechazó la planificación: {exc}") from exc

        self._in_flight = futures
        self.phase = TickPhase.PLANS_SUBMITTED

        try:
            wait(futures)
        except KeyboardInterrupt as exc:
            for future in futures:
                future.cancel()
            raise ExecutionError("Espera de la barrera interrumpida") from exc
        finally:
            self._in_flight = []
        self.phase = TickPhase.BARRIER

        # Un cierre durante la espera invalida el paso aunque los trabajadores terminen
        if self._closed:
            raise ExecutionError("El planificador de pasos se cerró durante la planificación")

        intentions: List[Intention] = []
        for future in futures:
            if future.cancelled():
                raise ExecutionError("Planificación cancelada durante el cierre del pool")
            error = future.exception()
            if error is not None:
                raise ExecutionError(f"Falló un trabajador de planificación: {error}") from error
            intentions.extend(future.result())

        return intentions

    def shutdown(self, grace_period: float = ParallelConfig.SHUTDOWN_GRACE_PERIOD):
        """
        Libera el pool de trabajadores.

        Espera hasta `grace_period` segundos a que terminen las tareas en
        curso; si no terminan, cancela las pendientes y abandona el pool.
        Después de cerrar, cualquier paso lanza ExecutionError.
        """
        if self._closed:
            return
        self._closed = True

        if self._executor is None:
            return

        _, pending = wait(list(self._in_flight), timeout=grace_period)
        if pending:
            logger.warning("Cierre forzado: %d tareas de planificación sin terminar", len(pending))
            self._executor.shutdown(wait=False, cancel_futures=True)
        else:
            self._executor.shutdown(wait=True)
        logger.info("Pool de planificación cerrado (%d hilos)", self.num_threads)

    def __repr__(self) -> str:
        mode = f"parallel({self.num_threads})" if self.is_parallel else "sequential"
        return f"TickScheduler({mode}, ticks={self.ticks_completed}, phase={self.phase.name})"
