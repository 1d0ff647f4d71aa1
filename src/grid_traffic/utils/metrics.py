"""
Sistema de métricas y análisis de resultados.

Este módulo contiene el acumulador de métricas que actualiza el motor en
cada paso, y funciones para analizar el historial de una o varias
ejecuciones (por ejemplo, secuencial contra paralela).
"""

from collections import deque
from typing import Deque, Dict, List, Optional

import numpy as np
import pandas as pd

from .config import MetricsConfig


class SimulationMetrics:
    """
    Métricas agregadas del sistema de tráfico.

    Guarda el último estado (totales, detenidos, en movimiento,
    movimientos acumulados), el tiempo de cómputo de cada paso y el
    historial por paso.

    El historial crece un registro por paso. Con `history_limit` se
    conservan solo los últimos pasos, para ejecuciones muy largas.
    """

    def __init__(self, history_limit: Optional[int] = MetricsConfig.HISTORY_LIMIT):
        self.history: Deque[Dict] = deque(maxlen=history_limit)
        self.reset()

    def reset(self):
        """Reinicia todas las métricas y el historial."""
        self.total_vehicles = 0
        self.stopped_vehicles = 0
        self.moving_vehicles = 0
        self.total_moves = 0
        self.execution_time_ms = 0.0
        self.last_step_time_ms = 0.0
        self.steps = 0
        self.history.clear()

    def update(self, total_vehicles: int, stopped_vehicles: int, total_moves: int):
        """
        Registra el estado al final de un paso.

        Args:
            total_vehicles: Vehículos en la simulación
            stopped_vehicles: Vehículos detenidos en este paso
            total_moves: Movimientos acumulados de todos los vehículos
        """
        self.total_vehicles = total_vehicles
        self.stopped_vehicles = stopped_vehicles
        self.moving_vehicles = total_vehicles - stopped_vehicles
        self.total_moves = total_moves
        self.steps += 1

        self.history.append({
            'step': self.steps,
            'total_vehicles': self.total_vehicles,
            'stopped_vehicles': self.stopped_vehicles,
            'moving_vehicles': self.moving_vehicles,
            'total_moves': self.total_moves,
            'average_flow': self.get_average_flow(),
            'stop_percentage': self.get_stop_percentage(),
            'step_time_ms': None
        })

    def record_step_time(self, elapsed_ms: float):
        """Registra el tiempo de cómputo del último paso."""
        self.last_step_time_ms = elapsed_ms
        if self.history:
            self.history[-1]['step_time_ms'] = elapsed_ms

    def set_execution_time(self, elapsed_ms: float):
        """Registra el tiempo total de una ejecución de varios pasos."""
        self.execution_time_ms = elapsed_ms

    def get_average_flow(self) -> float:
        """Fracción de vehículos en movimiento (0.0 a 1.0)."""
        if self.total_vehicles == 0:
            return 0.0
        return self.moving_vehicles / self.total_vehicles

    def get_stop_percentage(self) -> float:
        """Porcentaje de vehículos detenidos."""
        if self.total_vehicles == 0:
            return 0.0
        return self.stopped_vehicles / self.total_vehicles * 100.0

    def get_throughput(self) -> float:
        """Movimientos por segundo de cómputo (0 si no hay tiempo medido)."""
        if self.execution_time_ms <= 0:
            return 0.0
        return self.total_moves / (self.execution_time_ms / 1000.0)

    def snapshot(self) -> Dict:
        """
        Retorna una copia del estado actual de las métricas.

        Returns:
            dict: Métricas del último paso
        """
        return {
            'steps': self.steps,
            'total_vehicles': self.total_vehicles,
            'stopped_vehicles': self.stopped_vehicles,
            'moving_vehicles': self.moving_vehicles,
            'total_moves': self.total_moves,
            'average_flow': self.get_average_flow(),
            'stop_percentage': self.get_stop_percentage(),
            'last_step_time_ms': self.last_step_time_ms,
            'execution_time_ms': self.execution_time_ms,
            'throughput': self.get_throughput()
        }

    def to_dataframe(self) -> pd.DataFrame:
        """Retorna el historial por paso como DataFrame."""
        columns = ['step'] + MetricsConfig.METRICS
        return pd.DataFrame(list(self.history), columns=columns)

    def __str__(self) -> str:
        return (f" Vehículos totales: {self.total_vehicles}\n"
                f" Vehículos detenidos: {self.stopped_vehicles} "
                f"({self.get_stop_percentage():.2f}%)\n"
                f" Vehículos en movimiento: {self.moving_vehicles}\n"
                f" Flujo promedio: {self.get_average_flow():.2f}\n"
                f" Movimientos totales: {self.total_moves}\n"
                f" Tiempo de ejecución: {self.execution_time_ms:.0f} ms")

    def __repr__(self) -> str:
        return (f"SimulationMetrics(steps={self.steps}, total={self.total_vehicles}, "
                f"stopped={self.stopped_vehicles}, moves={self.total_moves})")


class MetricsCalculator:
    """
    Calculadora de métricas sobre historiales de simulación.

    Proporciona métodos estáticos para resumir y comparar ejecuciones.
    """

    @staticmethod
    def average_stop_percentage(history: pd.DataFrame) -> float:
        """
        Calcula el porcentaje de detenidos promedio a lo largo de los pasos.

        Args:
            history: Historial por paso (SimulationMetrics.to_dataframe())

        Returns:
            float: Porcentaje promedio
        """
        if history.empty:
            return 0.0
        return float(np.mean(history['stop_percentage']))

    @staticmethod
    def median_stop_percentage(history: pd.DataFrame) -> float:
        if history.empty:
            return 0.0
        return float(np.median(history['stop_percentage']))

    @staticmethod
    def percentile_stop_percentage(history: pd.DataFrame, percentile: float = 95) -> float:
        """
        Calcula un percentil del porcentaje de detenidos.

        Args:
            history: Historial por paso
            percentile: Percentil a calcular (0-100)

        Returns:
            float: Porcentaje de detenidos en el percentil dado
        """
        if history.empty:
            return 0.0
        return float(np.percentile(history['stop_percentage'], percentile))

    @staticmethod
    def average_flow(history: pd.DataFrame) -> float:
        if history.empty:
            return 0.0
        return float(np.mean(history['average_flow']))

    @staticmethod
    def average_step_time(history: pd.DataFrame) -> float:
        """Tiempo de cómputo promedio por paso en ms (ignora pasos sin medir)."""
        times = history['step_time_ms'].dropna() if not history.empty else []
        if len(times) == 0:
            return 0.0
        return float(np.mean(times))

    @staticmethod
    def create_summary_dataframe(results: Dict[str, SimulationMetrics]) -> pd.DataFrame:
        """
        Crea un DataFrame con resumen comparativo de ejecuciones.

        Args:
            results: Dict {nombre_ejecución: métricas}

        Returns:
            pd.DataFrame: DataFrame con métricas comparadas
        """
        data = []

        for run_name, metrics in results.items():
            history = metrics.to_dataframe()
            data.append({
                'Run': run_name,
                'Steps': metrics.steps,
                'Vehicles': metrics.total_vehicles,
                'Avg Stopped (%)': MetricsCalculator.average_stop_percentage(history),
                'Final Stopped (%)': metrics.get_stop_percentage(),
                'Avg Flow': MetricsCalculator.average_flow(history),
                'Total Moves': metrics.total_moves,
                'Avg Step Time (ms)': MetricsCalculator.average_step_time(history),
                'Execution Time (ms)': metrics.execution_time_ms,
                'Throughput (moves/s)': metrics.get_throughput()
            })

        df = pd.DataFrame(data)

        # Ordenar por tiempo de ejecución (menor es mejor)
        if not df.empty:
            df = df.sort_values('Execution Time (ms)')

        return df

    @staticmethod
    def statistical_significance_test(results1: List[float], results2: List[float]) -> Dict:
        """
        Realiza test de significancia estadística entre dos conjuntos de resultados.

        Usa test t de Student para muestras independientes. Sirve para
        verificar que una ejecución paralela y una secuencial tienen un
        comportamiento agregado equivalente.

        Args:
            results1: Lista de valores del primer grupo
            results2: Lista de valores del segundo grupo

        Returns:
            dict: Resultado del test con p-value y conclusión
        """
        from scipy import stats

        if len(results1) < 2 or len(results2) < 2:
            return {
                'test': 't-test',
                'statistic': None,
                'p_value': None,
                'significant': False,
                'message': 'Muestras insuficientes'
            }

        statistic, p_value = stats.ttest_ind(results1, results2)

        significant = bool(p_value < MetricsConfig.SIGNIFICANCE_LEVEL)

        return {
            'test': 't-test',
            'statistic': float(statistic),
            'p_value': float(p_value),
            'significant': significant,
            'message': f"{'Diferencia significativa' if significant else 'No hay diferencia significativa'} (p={p_value:.4f})"
        }
