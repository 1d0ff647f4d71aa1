"""
Script de ejemplo: Simulación de tráfico urbano basada en agentes

Este script ejecuta la misma configuración en modo secuencial y en modo
paralelo, imprime las métricas de cada una y compara su comportamiento
agregado.
"""

import argparse

from grid_traffic.simulator import Grid, TrafficSimulator
from grid_traffic.utils.config import (DEFAULT_GRID_FILE, RESULTS_DIR, LoggingConfig, ParallelConfig,
                                       SimulatorConfig, configure_logging, ensure_directories)
from grid_traffic.utils.metrics import MetricsCalculator


def print_configuration(args):
    """Imprime la configuración de la ejecución."""
    print("Configuración:")
    print(f"  Archivo de rejilla: {args.grid}")
    print(f"  Número de vehículos: {args.vehicles}")
    print(f"  Pasos de simulación: {args.steps}")
    print(f"  Ciclo de semáforo: {args.cycle} pasos")
    print(f"  Probabilidad de cambio de dirección: {args.prob * 100:.0f}%")
    print(f"  Hilos (versión paralela): {args.threads}")
    print()


def print_grid_state(simulator: TrafficSimulator):
    """
    Imprime la rejilla con los vehículos.

    'V' marca una celda con algún vehículo en movimiento; 'X' una celda
    donde todos los vehículos quedaron detenidos.
    """
    rows = [list(line) for line in simulator.grid.to_text().split("\n")]
    for position, vehicles in simulator.occupancy:
        moving = any(not v.stopped for v in vehicles)
        rows[position.y][position.x] = 'V' if moving else 'X'
    print("\n".join("".join(row) for row in rows))


def run_mode(grid: Grid, args, num_threads=None) -> TrafficSimulator:
    """
    Ejecuta una simulación completa en el modo indicado.

    Returns:
        TrafficSimulator: Simulador ya cerrado, para consultar métricas
    """
    title = "SECUENCIAL" if num_threads is None else f"PARALELA ({num_threads} hilos)"
    print("\n" + "=" * 70)
    print(f"SIMULACIÓN {title}")
    print("=" * 70)

    with TrafficSimulator(grid,
                          vehicle_count=args.vehicles,
                          cycle_duration=args.cycle,
                          direction_change_prob=args.prob,
                          num_threads=num_threads,
                          seed=args.seed) as simulator:
        simulator.run(args.steps, verbose=args.verbose)

        if args.show_grid:
            print_grid_state(simulator)

        print(f"\n{simulator.metrics}")
        print("\nDetalles de rendimiento:")
        print(f"  Throughput: {simulator.metrics.get_throughput():.2f} movimientos/segundo")

    return simulator


def main():
    """Función principal del ejemplo."""
    parser = argparse.ArgumentParser(description="Simulación de tráfico basada en agentes")
    parser.add_argument("--grid", default=str(DEFAULT_GRID_FILE))
    parser.add_argument("--vehicles", type=int, default=SimulatorConfig.VEHICLE_COUNT)
    parser.add_argument("--steps", type=int, default=SimulatorConfig.SIMULATION_STEPS)
    parser.add_argument("--cycle", type=int, default=SimulatorConfig.TRAFFIC_LIGHT_CYCLE)
    parser.add_argument("--prob", type=float, default=SimulatorConfig.DIRECTION_CHANGE_PROB)
    parser.add_argument("--threads", type=int, default=ParallelConfig.DEFAULT_THREADS)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--show-grid", action="store_true")
    parser.add_argument("--verbose", action="store_true")
    parser.add_argument("--log-level", default=None)
    parser.add_argument("--log-file", action="store_true",
                        help=f"Escribir también el log en {LoggingConfig.LOG_FILE.name}")
    parser.add_argument("--save", action="store_true",
                        help="Guardar resumen e historiales en experiments/results")
    args = parser.parse_args()

    configure_logging(args.log_level, LoggingConfig.LOG_FILE if args.log_file else None)

    print("=" * 70)
    print("   SIMULACIÓN BASADA EN AGENTES DE TRÁFICO URBANO")
    print("=" * 70)
    print_configuration(args)

    grid = Grid.from_file(args.grid)
    print("Rejilla urbana:")
    print(grid.to_text())
    print()

    sequential = run_mode(grid, args)
    parallel = run_mode(grid, args, num_threads=args.threads)

    # Comparación
    print("\n" + "=" * 70)
    print("RESUMEN COMPARATIVO")
    print("=" * 70)

    calc = MetricsCalculator()
    df = calc.create_summary_dataframe({
        'secuencial': sequential.metrics,
        f'paralela-{args.threads}': parallel.metrics
    })
    print(df.to_string(index=False))

    seq_history = sequential.metrics.to_dataframe()
    par_history = parallel.metrics.to_dataframe()
    test = calc.statistical_significance_test(
        list(seq_history['stop_percentage']),
        list(par_history['stop_percentage'])
    )
    print(f"\nPorcentaje de detenidos (secuencial vs paralela): {test['message']}")

    if args.save:
        ensure_directories()
        df.to_csv(RESULTS_DIR / "summary.csv", index=False)
        seq_history.to_csv(RESULTS_DIR / "history_sequential.csv", index=False)
        par_history.to_csv(RESULTS_DIR / "history_parallel.csv", index=False)
        print(f"\nResultados guardados en: {RESULTS_DIR}")


if __name__ == "__main__":
    main()
