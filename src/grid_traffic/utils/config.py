"""
Configuración global del simulador de tráfico basado en agentes.

Este módulo contiene las constantes y parámetros por defecto utilizados
en el proyecto, y la configuración de logging.
"""

import logging
import os
from pathlib import Path
from typing import Optional

# Rutas del proyecto
PROJECT_ROOT = Path(__file__).parent.parent.parent.parent
DATA_DIR = PROJECT_ROOT / "data"
GRIDS_DIR = DATA_DIR / "grids"
RESULTS_DIR = PROJECT_ROOT / "experiments" / "results"

# Archivos de datos
DEFAULT_GRID_FILE = GRIDS_DIR / "grid.txt"


# Parámetros del simulador
class SimulatorConfig:
    """Configuración del simulador de tráfico."""

    # Ejecución
    SIMULATION_STEPS = 100
    VISUALIZATION_INTERVAL = 20  # pasos entre reportes de progreso

    # Vehículos
    VEHICLE_COUNT = 5000

    # Semáforos
    TRAFFIC_LIGHT_CYCLE = 10  # pasos por fase

    # Comportamiento
    DIRECTION_CHANGE_PROB = 0.2  # giro voluntario en intersecciones
    MAX_VEHICLES_PER_CELL = 2  # un carril por sentido


# Parámetros de paralelización
class ParallelConfig:
    """Configuración de la versión paralela."""

    DEFAULT_THREADS = os.cpu_count() or 4
    SHUTDOWN_GRACE_PERIOD = 5.0  # segundos antes de forzar el cierre
    THREAD_NAME_PREFIX = "planner"


# Métricas de evaluación
class MetricsConfig:
    """Configuración de métricas de evaluación."""

    METRICS = [
        "total_vehicles",      # Vehículos en la simulación
        "stopped_vehicles",    # Vehículos detenidos en el último paso
        "moving_vehicles",     # Vehículos que se movieron en el último paso
        "total_moves",         # Movimientos acumulados
        "average_flow",        # Fracción de vehículos en movimiento
        "stop_percentage",     # Porcentaje de congestión
        "step_time_ms",        # Tiempo de cómputo del paso
    ]

    SIGNIFICANCE_LEVEL = 0.05
    HISTORY_LIMIT = None  # pasos conservados en el historial (None: todos)


# Logging
class LoggingConfig:
    """Configuración de logging."""

    LOG_LEVEL = "INFO"
    LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    LOG_FILE = PROJECT_ROOT / "simulation.log"


def configure_logging(level: Optional[str] = None, log_file: Optional[Path] = None):
    """
    Configura el logging raíz con el formato del proyecto.

    Args:
        level: Nivel de log (por defecto LoggingConfig.LOG_LEVEL)
        log_file: Si se indica, también escribe a ese archivo
    """
    handlers = [logging.StreamHandler()]
    if log_file is not None:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    logging.basicConfig(
        level=getattr(logging, (level or LoggingConfig.LOG_LEVEL).upper()),
        format=LoggingConfig.LOG_FORMAT,
        handlers=handlers,
        force=True,
    )


# Crear directorios si no existen
def ensure_directories():
    """Crea los directorios necesarios si no existen."""
    for directory in [DATA_DIR, GRIDS_DIR, RESULTS_DIR]:
        directory.mkdir(parents=True, exist_ok=True)
