"""Domain models for repository identities and pull request data.

These dataclasses intentionally model only the subset of provider payload fields
that are required to detect pending dependency upgrades.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .errors import UnrecognizedRemoteFormat


class Provider(Enum):
    """Source-control hosting providers the scorecard can query."""

    AZURE_DEVOPS = "AzureDevOps"
    GITHUB = "GitHub"


@dataclass(frozen=True)
class RepositoryIdentity:
    """Provider-qualified identity of a hosted repository.

    ``project`` is required for Azure DevOps and always empty for GitHub.
    """

    provider: Provider
    organization: str
    project: str
    repository: str

    def __post_init__(self) -> None:
        if not self.organization or not self.repository:
            raise UnrecognizedRemoteFormat(
                f"Repository identity requires an organization and a repository: {self!r}"
            )
        if self.provider is Provider.AZURE_DEVOPS and not self.project:
            raise UnrecognizedRemoteFormat(
                f"Azure DevOps repository identity requires a project: {self!r}"
            )
        if self.provider is Provider.GITHUB and self.project:
            raise UnrecognizedRemoteFormat(
                f"GitHub repository identity cannot carry a project: {self!r}"
            )

    @property
    def display_name(self) -> str:
        if self.provider is Provider.GITHUB:
            return f"{self.organization}/{self.repository}"
        return f"{self.organization}/{self.project}/{self.repository}"

    def __str__(self) -> str:
        return f"{self.provider.value}: {self.display_name}"


@dataclass(slots=True)
class PullRequest:
    """Represents the minimal pull request data required for renovate detection."""

    id: int
    source_branch_name: str
    repository_name: str
    repository_id: str


@dataclass(slots=True)
class Iteration:
    """Represents one push within an Azure DevOps pull request."""

    id: int


@dataclass(slots=True)
class ChangedFile:
    """Represents a file path touched by a pull request."""

    path: str
