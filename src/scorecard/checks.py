"""Scorecard checks.

Every check is run against one service directory and returns the deductions it
found, in discovery order. Recoverable problems (unknown remotes, failed
provider calls) make a check abstain with an empty result instead of failing
the run.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable, List, Mapping, Optional

from .config import DEFAULT_PROJECT_GLOB
from .deductions import Deduction
from .errors import NoRemoteFound, UnrecognizedRemoteFormat
from .http_client import HttpGet
from .models import Provider, RepositoryIdentity
from .providers import create_provider_client
from .remote import locate_repository, read_git_remotes
from .scanner import scan_pull_requests
from .scoring import CheckInfo

logger = logging.getLogger(__name__)

RemoteReader = Callable[[Path], List[str]]


def find_project_file(service_root: Path, project_glob: str) -> Optional[Path]:
    """Return the first top-level project file of a service, if any."""
    candidates = sorted(path for path in service_root.glob(project_glob) if path.is_file())
    return candidates[0] if candidates else None


class BaseCheck(ABC):
    """A single scorecard criterion."""

    name: str = ""
    description: str = ""

    @property
    def info(self) -> CheckInfo:
        return CheckInfo(name=self.name, description=self.description)

    def run(self, working_directory: Path, relative_service_path: str) -> List[Deduction]:
        """Evaluate the check for the service at ``relative_service_path``."""
        logger.debug(
            "Running check",
            extra={"check": self.name, "service": relative_service_path},
        )
        return self._run(working_directory, relative_service_path)

    @abstractmethod
    def _run(self, working_directory: Path, relative_service_path: str) -> List[Deduction]:
        ...


class _PullRequestCheck(BaseCheck):
    """Shared remote resolution for checks querying a provider's pull requests."""

    def __init__(
        self,
        http_gets: Mapping[Provider, HttpGet],
        max_workers: int = 4,
        remote_reader: RemoteReader = read_git_remotes,
    ) -> None:
        self._http_gets = http_gets
        self._max_workers = max_workers
        self._remote_reader = remote_reader

    def _locate(self, service_root: Path, provider: Optional[Provider] = None) -> Optional[RepositoryIdentity]:
        remote_lines = self._remote_reader(service_root)
        try:
            return locate_repository(remote_lines, provider=provider)
        except UnrecognizedRemoteFormat as exc:
            logger.error("Unrecognized remote for %s; can't check for open pull requests: %s", service_root, exc)
        except NoRemoteFound:
            logger.error("No supported remotes found for %s; can't check for open pull requests", service_root)
        return None

    def _scan(self, identity: RepositoryIdentity, target_path: str) -> List[Deduction]:
        client = create_provider_client(identity, self._http_gets[identity.provider])
        return scan_pull_requests(identity, client, target_path, max_workers=self._max_workers)


class PendingRenovateAzurePRsCheck(_PullRequestCheck):
    """Deducts for open renovate pull requests touching a service's directory."""

    name = "PendingRenovateAzurePRs"
    description = (
        "Every open Renovate pull request in Azure DevOps that changes files of the "
        "service deducts 20 points. Merge or close pending dependency upgrades."
    )

    def _run(self, working_directory: Path, relative_service_path: str) -> List[Deduction]:
        identity = self._locate(working_directory / relative_service_path, Provider.AZURE_DEVOPS)
        if identity is None:
            return []
        return self._scan(identity, relative_service_path)


class RemainingDependencyUpgradesCheck(_PullRequestCheck):
    """Deducts for open renovate pull requests touching a service's project file."""

    name = "RemainingDependencyUpgrades"
    description = (
        "Every open Renovate pull request (Azure DevOps or GitHub) that changes the "
        "service's project file deducts 20 points."
    )

    def __init__(
        self,
        http_gets: Mapping[Provider, HttpGet],
        max_workers: int = 4,
        remote_reader: RemoteReader = read_git_remotes,
        project_glob: str = DEFAULT_PROJECT_GLOB,
    ) -> None:
        super().__init__(http_gets, max_workers=max_workers, remote_reader=remote_reader)
        self._project_glob = project_glob

    def _run(self, working_directory: Path, relative_service_path: str) -> List[Deduction]:
        service_root = working_directory / relative_service_path
        project_file = find_project_file(service_root, self._project_glob)
        if project_file is None:
            logger.error("No project file matching %s found in %s", self._project_glob, service_root)
            return []

        identity = self._locate(service_root)
        if identity is None:
            return []
        return self._scan(identity, project_file.relative_to(working_directory).as_posix())


class ImplicitAssemblyInfoCheck(BaseCheck):
    """Verifies that assembly metadata is generated from the project file."""

    name = "ImplicitAssemblyInfo"
    description = (
        "The project file must declare the assembly metadata properties and set "
        "<GenerateAssemblyInfo> to true."
    )

    REQUIRED_PROPERTIES = (
        "Company",
        "Copyright",
        "Description",
        "FileVersion",
        "InformalVersion",
        "Product",
        "UserSecretsId",
    )

    def __init__(self, project_glob: str = DEFAULT_PROJECT_GLOB) -> None:
        self._project_glob = project_glob

    def _run(self, working_directory: Path, relative_service_path: str) -> List[Deduction]:
        service_root = working_directory / relative_service_path
        project_file = find_project_file(service_root, self._project_glob)
        if project_file is None:
            return [Deduction.create(100, "No project file found at %s", service_root, audit_logger=logger)]

        try:
            project = ET.parse(project_file).getroot()
        except ET.ParseError as exc:
            return [Deduction.create(100, "Could not parse %s: %s", project_file, exc, audit_logger=logger)]

        deductions = [
            Deduction.create(20, "No <%s> element found in %s", name, project_file, audit_logger=logger)
            for name in self.REQUIRED_PROPERTIES
            if project.find(f"./PropertyGroup/{name}") is None
        ]

        element = project.find("./PropertyGroup/GenerateAssemblyInfo")
        generate_assembly_info = (element.text or "").strip() if element is not None else ""
        expected_value = "true"
        if not generate_assembly_info:
            deductions.append(
                Deduction.create(100, "No <GenerateAssemblyInfo> element found in %s", project_file, audit_logger=logger)
            )
        elif generate_assembly_info.lower() != expected_value:
            deductions.append(
                Deduction.create(
                    100,
                    "Expected: <GenerateAssemblyInfo> should contain '%s'. Actual: '%s'",
                    expected_value,
                    generate_assembly_info,
                    audit_logger=logger,
                )
            )

        return deductions
