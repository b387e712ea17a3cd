"""
Unified Analysis Runner
=======================

Command-line interface for running the analysis suites.

Usage:
    # List available suites
    python -m walkthrough --list

    # Run the latent growth suite
    python -m walkthrough --suite growth

    # Run one analysis with config overrides
    python -m walkthrough --suite trees --analysis fit_models --set folds.v=5

    # Run all suites
    python -m walkthrough --all
"""

from __future__ import annotations

import sys
if sys.platform.startswith("win") and hasattr(sys.stdout, "reconfigure"):
    sys.stdout.reconfigure(encoding='utf-8')

import argparse
from typing import Optional


def main(args: Optional[list] = None) -> int:
    """Main entry point for analysis CLI."""

    parser = argparse.ArgumentParser(
        prog='python -m walkthrough',
        description='Latent growth and tree ensemble modeling workflows',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m walkthrough --list                          # List suites and analyses
  python -m walkthrough -s growth                       # Run the growth suite
  python -m walkthrough -s growth -a bootstrap          # Run one analysis
  python -m walkthrough -s trees --set mode=classification --set outcome=classification
  python -m walkthrough --all                           # Run all suites

Available Suites:
  growth    Parallel-process latent growth curve models
  trees     Bagged trees, random forest and boosted trees
        """
    )

    parser.add_argument(
        '--suite', '-s',
        type=str,
        metavar='NAME',
        help='Suite to run (growth, trees)'
    )

    parser.add_argument(
        '--analysis', '-a',
        type=str,
        metavar='NAME',
        help='Specific analysis within suite'
    )

    parser.add_argument(
        '--config', '-c',
        type=str,
        metavar='PATH',
        help='YAML config replacing the suite default'
    )

    parser.add_argument(
        '--set',
        dest='overrides',
        action='append',
        default=[],
        metavar='KEY=VALUE',
        help='Override a config value, e.g. bootstrap.n_bootstrap=50 (repeatable)'
    )

    parser.add_argument(
        '--list', '-l',
        action='store_true',
        help='List available suites and analyses'
    )

    parser.add_argument(
        '--all',
        action='store_true',
        help='Run all suites in recommended order'
    )

    parser.add_argument(
        '--quiet', '-q',
        action='store_true',
        help='Suppress verbose output'
    )

    parser.add_argument(
        '--force-rebuild',
        action='store_true',
        help='Ignore cached data'
    )

    parser.add_argument(
        '--stop-on-error',
        action='store_true',
        help='Stop --all at the first failing suite'
    )

    parsed = parser.parse_args(args)

    verbose = not parsed.quiet

    # Import run module (delayed to speed up --help)
    from walkthrough.run import run_suite, run_all_suites, list_suites

    if parsed.list:
        list_suites(show_analyses=True)
        return 0

    if parsed.all:
        print("\n" + "=" * 80)
        print("RUNNING ALL ANALYSIS SUITES")
        print("=" * 80)

        results = run_all_suites(
            verbose=verbose,
            force_rebuild=parsed.force_rebuild,
            skip_on_error=not parsed.stop_on_error,
            overrides=parsed.overrides,
        )

        successful = sum(1 for v in results.values() if v is not None)
        failed = sum(1 for v in results.values() if v is None)

        print("\n" + "=" * 80)
        print("SUMMARY")
        print("=" * 80)
        print(f"  Successful: {successful}")
        print(f"  Failed: {failed}")

        return 0 if failed == 0 else 1

    if parsed.suite:
        try:
            run_suite(
                parsed.suite,
                analysis=parsed.analysis,
                verbose=verbose,
                force_rebuild=parsed.force_rebuild,
                config=parsed.config,
                overrides=parsed.overrides,
            )
            return 0
        except Exception as e:
            print(f"Error running {parsed.suite}: {e}")
            return 1

    parser.print_help()
    return 0


if __name__ == '__main__':
    sys.exit(main())
