"""
Excepciones del motor de simulación.

Los errores de configuración se detectan al construir la simulación;
los errores de ejecución abortan el paso en curso sin confirmar cambios.
"""


class SimulationError(Exception):
    """Error base del simulador."""


class ConfigurationError(SimulationError, ValueError):
    """
    Configuración inválida detectada en la construcción.

    Ej: rejilla vacía, símbolo desconocido, sin celdas transitables,
    número de vehículos o duración de ciclo no positivos.
    """


class ExecutionError(SimulationError, RuntimeError):
    """
    Falla de concurrencia durante un paso de simulación.

    El conjunto parcial de intenciones se descarta: ningún vehículo
    se modifica en un paso que termina con este error.
    """
