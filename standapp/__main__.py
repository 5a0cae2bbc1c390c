"""
Package entry point: ``python -m standapp`` runs the benchmark.
"""
import asyncio
import sys


def run_main():
    """Run the benchmark and exit with its status code."""
    from .main import main

    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run_main()
