"""Command-line argument parsing for the service scorecard generator."""

from __future__ import annotations

import argparse
import os
from typing import Optional, Sequence

from .config import DEFAULT_PROJECT_GLOB


def _positive_int(value: str) -> int:
    """Parse and validate a positive integer CLI value.

    Args:
        value: Raw command-line argument value.

    Returns:
        The validated positive integer.

    Raises:
        argparse.ArgumentTypeError: If value is not a positive integer.
    """
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError("must be an integer") from exc

    if parsed <= 0:
        raise argparse.ArgumentTypeError("must be greater than 0")

    return parsed


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments for scorecard generation.

    Returns:
        Parsed CLI arguments containing the working and output directories, the
        project-file glob, the worker count and the verbosity flag.
    """
    parser = argparse.ArgumentParser(
        prog="scorecard-generator",
        description=(
            "Score every service in a source tree and render the results as an "
            "Azure DevOps wiki scorecard."
        ),
    )

    parser.add_argument(
        "--working-directory",
        default=os.getcwd(),
        help="Root of the source tree to score (default: current directory).",
    )
    parser.add_argument(
        "--output-directory",
        required=True,
        help="Directory the scorecard pages are written to.",
    )
    parser.add_argument(
        "--project-glob",
        default=DEFAULT_PROJECT_GLOB,
        help=f"Glob identifying a service's project file (default: {DEFAULT_PROJECT_GLOB}).",
    )
    parser.add_argument(
        "--max-workers",
        type=_positive_int,
        default=4,
        help="Pull requests inspected concurrently per check (default: 4).",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log full provider responses and other debug output.",
    )

    return parser.parse_args(argv)
