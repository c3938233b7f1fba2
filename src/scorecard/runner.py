"""Service discovery and check execution for one scorecard run."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Mapping, Sequence

from .checks import BaseCheck
from .deductions import Deduction
from .errors import ScorecardError
from .scoring import RunInfo, ServiceScorecard

logger = logging.getLogger(__name__)

_SKIPPED_DIRECTORIES = {"bin", "obj", "node_modules"}


def discover_services(working_directory: Path, project_glob: str) -> List[str]:
    """Find service directories, i.e. directories holding a project file.

    Hidden directories and build output are skipped.

    Returns:
        Sorted service paths relative to ``working_directory`` in POSIX form.
    """
    services = set()
    for project_file in working_directory.rglob(project_glob):
        relative_parts = project_file.relative_to(working_directory).parts[:-1]
        if any(part.startswith(".") or part in _SKIPPED_DIRECTORIES for part in relative_parts):
            continue
        services.add(Path(*relative_parts).as_posix() if relative_parts else ".")

    return sorted(services)


def run_check(check: BaseCheck, working_directory: Path, relative_service_path: str) -> List[Deduction]:
    """Run one check, confining recoverable failures to that check."""
    try:
        return check.run(working_directory, relative_service_path)
    except ScorecardError:
        logger.exception(
            "Check failed; recording no deductions",
            extra={"check": check.name, "service": relative_service_path},
        )
        return []


def run_checks(
    working_directory: Path,
    services: Sequence[str],
    checks_by_group: Mapping[str, Sequence[BaseCheck]],
) -> RunInfo:
    """Run every check against every service and aggregate the results."""
    service_scores: Dict[str, ServiceScorecard] = {}

    for service in services:
        deductions_by_check: Dict[str, List[Deduction]] = {}
        for checks in checks_by_group.values():
            for check in checks:
                deductions_by_check[check.name] = run_check(check, working_directory, service)

        scorecard = ServiceScorecard.from_deductions(deductions_by_check)
        logger.info(
            "Scored service",
            extra={"service": service, "average": scorecard.average, "checks": len(deductions_by_check)},
        )
        service_scores[service] = scorecard

    return RunInfo.create(
        checks={group: [check.info for check in checks] for group, checks in checks_by_group.items()},
        service_scores=service_scores,
    )
