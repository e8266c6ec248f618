"""
Example: Solving a capacitated p-median instance with branch-and-price.

This example demonstrates the complete workflow:
1. Load a .cpmp instance
2. Configure the branch-and-price search
3. Solve and report the clusters of the best solution

Usage:
    python examples/scripts/cpmp/solve_cpmp.py [instance_path] [--knapsack dp|highs] [--verbose]

Prerequisites:
    - Install opencpmp with HiGHS: pip install -e .
"""

import argparse
import sys
import time
from pathlib import Path

# Add parent directory to path (for running without installation)
sys.path.insert(0, str(Path(__file__).parent.parent.parent.parent))

from opencpmp.config import config, get_instance_path
from opencpmp.master import HIGHS_AVAILABLE
from opencpmp.parsers import CPMPParser
from opencpmp.parsers.base import ParserConfig
from opencpmp.solver import BPConfig, BPStatus, BranchAndPrice


def parse_args():
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Solve a capacitated p-median instance using branch-and-price"
    )
    parser.add_argument(
        "instance",
        nargs="?",
        default=None,
        help="Path to instance file (default: data/p4_2.cpmp)"
    )
    parser.add_argument(
        "--max-time",
        type=float,
        default=0.0,
        help="Maximum solve time in seconds (default: unlimited)"
    )
    parser.add_argument(
        "--max-nodes",
        type=int,
        default=0,
        help="Maximum number of nodes (default: unlimited)"
    )
    parser.add_argument(
        "--knapsack",
        choices=["dp", "highs"],
        default=config.default_knapsack,
        help=f"Knapsack oracle for pricing (default: {config.default_knapsack})"
    )
    parser.add_argument(
        "--threads",
        type=int,
        default=config.num_threads,
        help="Threads for parallel pricing (default: %(default)s)"
    )
    parser.add_argument(
        "--rawdata",
        action="store_true",
        help="Display the instance data before solving"
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose output"
    )
    return parser.parse_args()


def format_time(seconds: float) -> str:
    """Format time in human-readable format."""
    if seconds < 60:
        return f"{seconds:.2f}s"
    mins = int(seconds // 60)
    secs = seconds % 60
    return f"{mins}m {secs:.1f}s"


def main():
    """Main entry point."""
    args = parse_args()

    if not HIGHS_AVAILABLE:
        print("Error: HiGHS solver not available.")
        print("Install with: pip install highspy")
        return 1

    if args.instance:
        instance_path = Path(args.instance)
    else:
        instance_path = get_instance_path("p4_2.cpmp")

    if not instance_path.exists():
        print(f"Error: Instance not found: {instance_path}")
        return 1

    print("=" * 70)
    print("OpenCPMP - Capacitated p-Median Solver")
    print("=" * 70)
    print(f"Instance: {instance_path}")
    print()

    parser = CPMPParser(ParserConfig(verbose=args.verbose))
    try:
        instance = parser.parse(instance_path)
    except ValueError as exc:
        print(f"Error: {exc}")
        return 1

    print(f"  Locations: {instance.num_locations}")
    print(f"  Clusters:  {instance.num_clusters}")
    print()

    if args.rawdata:
        print(instance.summary())
        print()

    bp_config = BPConfig(
        max_time=args.max_time,
        max_nodes=args.max_nodes,
        knapsack=args.knapsack,
        num_threads=args.threads,
        verbose=args.verbose,
    )

    print("Solving...")
    print("-" * 70)
    start_time = time.time()
    solution = BranchAndPrice(instance, bp_config).solve()
    solve_time = time.time() - start_time

    print()
    print("=" * 70)
    print("RESULTS")
    print("=" * 70)
    print(f"Status: {solution.status.name}")
    if solution.error:
        print(f"Error: {solution.error}")

    if solution.root_lp_objective is not None:
        print(f"Root LP bound: {solution.root_lp_objective:.4f}")
    if solution.is_feasible:
        print(f"Best solution: {solution.objective_value:g}")
        print()
        print(solution.cluster_summary())
    print()

    print(f"Nodes explored: {solution.nodes_explored}")
    print(f"Columns generated: {solution.total_columns}")
    print(f"Solve time: {format_time(solve_time)}")

    return 0 if solution.status != BPStatus.ERROR else 1


if __name__ == "__main__":
    sys.exit(main())
