"""
main.py — Entry Point
======================
Runs the approximator live, headless, or as a timing benchmark.

Usage:
    python main.py --mode live                        # Interactive viewer
    python main.py --mode headless --topology CORNER  # Print stats per tick
    python main.py --mode benchmark --cols 64 --rows 64
"""

import argparse
import logging

import numpy as np


def build_simulation(args):
    from tileflow import FluidSimulation, SimulationParams

    params = SimulationParams(
        viscosity=args.viscosity,
        time_step=args.dt,
        density=args.density,
        cell_size=args.cell_size,
        max_velocity=args.max_velocity,
    )
    return FluidSimulation(
        cols=args.cols, rows=args.rows,
        topology=args.topology,
        params=params,
        steps_per_tick=args.steps,
        update_pressure=not args.no_pressure,
        update_velocity=not args.no_velocity,
        seed=args.seed,
    )


def run_live(args):
    """Live interactive visualization."""
    from visualizer import FluidVisualizer

    sim = build_simulation(args)
    print(f"Starting live simulation ({sim.topology.name}, {sim.cols}x{sim.rows})...")
    print("Click tiles to push pressure, 'r' randomize, 'z' zero, space pause.")
    print("Close the window to exit.\n")

    viz = FluidVisualizer(sim)
    viz.run(fps=30)


def run_headless(args):
    """Run without display — prints stats every 10 ticks."""
    sim = build_simulation(args)

    print(f"\nHeadless simulation | {sim.topology.name} {sim.cols}x{sim.rows} | {args.frames} ticks")
    print(f"{'─'*60}")

    total_times = []
    for f in range(args.frames):
        metrics = sim.step()
        total_times.append(metrics["total_ms"])

        if f % 10 == 0:
            print(f"  Tick {f:03d} | {metrics['total_ms']:6.2f}ms | "
                  f"div_max={metrics['divergence_max']:.5f} | "
                  f"v_max={metrics['velocity_max']:.4f} | "
                  f"p=[{metrics['pressure_min']:.3f}, {metrics['pressure_max']:.3f}]")

    print(f"\n{'─'*60}")
    print(f"  Average: {np.mean(total_times):.2f}ms/tick")
    sim.print_status()


def run_benchmark(args):
    """Per-phase timing for every topology at the requested size."""
    from tileflow import TOPOLOGIES

    print(f"\n{'='*60}")
    print(f"  SWEEP BENCHMARK | {args.cols}x{args.rows} | {args.frames} ticks x {args.steps} steps")
    print(f"{'='*60}")
    print(f"\n{'Topology':<12} {'Pressure':>10} {'Velocity':>10} {'Total':>10}")
    print(f"{'─'*46}")

    for kind in TOPOLOGIES:
        args.topology = kind
        sim = build_simulation(args)
        sim.step()   # warm up
        logs = [sim.step() for _ in range(args.frames)]
        p = np.mean([m["pressure_ms"] for m in logs])
        v = np.mean([m["velocity_ms"] for m in logs])
        t = np.mean([m["total_ms"] for m in logs])
        print(f"  {kind:<10} {p:>8.2f}ms {v:>8.2f}ms {t:>8.2f}ms")


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Grid pressure/velocity approximator")
    parser.add_argument(
        "--mode", choices=["live", "headless", "benchmark"],
        default="headless",
        help="Run mode (default: headless)"
    )
    parser.add_argument("--topology", default="EDGE", type=str.upper,
                        choices=["CORNER", "EDGE", "HEX_EDGE"],
                        help="Lattice variant (default: EDGE)")
    parser.add_argument("--cols",   type=int, default=10, help="Tiles across (default: 10)")
    parser.add_argument("--rows",   type=int, default=10, help="Tiles down (default: 10)")
    parser.add_argument("--steps",  type=int, default=10, help="Step cycles per tick")
    parser.add_argument("--frames", type=int, default=100, help="Number of ticks")
    parser.add_argument("--seed",   type=int, default=None, help="Random seed")
    parser.add_argument("--dt",           type=float, default=1.0 / 60.0, help="Time step")
    parser.add_argument("--density",      type=float, default=1.0)
    parser.add_argument("--cell-size",    type=float, default=1.0)
    parser.add_argument("--viscosity",    type=float, default=0.1)
    parser.add_argument("--max-velocity", type=float, default=5.0)
    parser.add_argument("--no-pressure", action="store_true", help="Skip the pressure phase")
    parser.add_argument("--no-velocity", action="store_true", help="Skip the velocity phase")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser.parse_args(argv)


if __name__ == "__main__":
    args = parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.mode == "live":
        run_live(args)
    elif args.mode == "headless":
        run_headless(args)
    elif args.mode == "benchmark":
        run_benchmark(args)
