"""Application entry point for the service scorecard generator."""

from __future__ import annotations

import logging
import sys
from typing import Dict, List, Optional, Sequence

from .checks import (
    BaseCheck,
    ImplicitAssemblyInfoCheck,
    PendingRenovateAzurePRsCheck,
    RemainingDependencyUpgradesCheck,
)
from .cli import parse_args
from .config import Config, load_config
from .errors import AuthenticationError, ConfigurationError
from .http_client import create_http_gets
from .runner import discover_services, run_checks
from .visualizer import AzureWikiTableVisualizer

logger = logging.getLogger(__name__)

EXIT_SUCCESS = 0
EXIT_UNEXPECTED_ERROR = 1
EXIT_CONFIGURATION_ERROR = 2
EXIT_AUTHENTICATION_ERROR = 3


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def build_checks(config: Config) -> Dict[str, List[BaseCheck]]:
    """Assemble the grouped checks of a run; groups only affect presentation."""
    http_gets = create_http_gets(config)
    return {
        "Gold": [ImplicitAssemblyInfoCheck(project_glob=config.project_glob)],
        "Silver": [
            PendingRenovateAzurePRsCheck(http_gets, max_workers=config.max_workers),
            RemainingDependencyUpgradesCheck(
                http_gets,
                max_workers=config.max_workers,
                project_glob=config.project_glob,
            ),
        ],
    }


def orchestrate_scorecard_generation(argv: Optional[Sequence[str]] = None) -> int:
    """Run the full scorecard workflow and map failures to exit codes."""
    try:
        args = parse_args(argv)
        configure_logging(args.verbose)

        config = load_config(
            working_directory=args.working_directory,
            output_directory=args.output_directory,
            project_glob=args.project_glob,
            max_workers=args.max_workers,
        )

        services = discover_services(config.working_directory, config.project_glob)
        logger.info(
            "Discovered services",
            extra={"working_directory": str(config.working_directory), "services": len(services)},
        )

        run_info = run_checks(config.working_directory, services, build_checks(config))
        written = AzureWikiTableVisualizer(config.output_directory).visualize(run_info)
        print(f"Scorecard written to {written[0]}")
        return EXIT_SUCCESS
    except AuthenticationError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return EXIT_AUTHENTICATION_ERROR
    except ConfigurationError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return EXIT_CONFIGURATION_ERROR
    except Exception as exc:
        logger.exception("Unexpected failure while generating the scorecard")
        print(f"ERROR: {exc}", file=sys.stderr)
        return EXIT_UNEXPECTED_ERROR


def main() -> int:
    return orchestrate_scorecard_generation()


if __name__ == "__main__":
    raise SystemExit(main())
