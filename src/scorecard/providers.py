"""Provider REST clients for pull request and changed-file lookups.

Each client is bound to one repository identity and an injected ``HttpGet``
callable. Clients decode their provider's JSON shapes into the shared models;
the traversal across pull requests lives in :mod:`scorecard.scanner`.
"""

from __future__ import annotations

import html
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Type, TypeVar

import requests

from .deductions import Deduction
from .errors import ProviderRequestFailed
from .http_client import HttpGet
from .models import ChangedFile, Iteration, Provider, PullRequest, RepositoryIdentity

logger = logging.getLogger(__name__)

RENOVATE_BRANCH_MARKER = "renovate"

T = TypeVar("T")


class ProviderClient(ABC):
    """Capability shared by all provider clients."""

    provider: Provider

    def __init__(self, identity: RepositoryIdentity, http_get: HttpGet) -> None:
        if identity.provider is not self.provider:
            raise ValueError(
                f"{type(self).__name__} cannot serve a {identity.provider.value} repository."
            )
        self._identity = identity
        self._http_get = http_get

    @property
    def identity(self) -> RepositoryIdentity:
        return self._identity

    def _get_json(self, url: str, decode: Callable[[Any], T], expected_type: type = dict) -> T:
        """Execute a GET request and decode its JSON payload with ``decode``.

        Raises:
            ProviderRequestFailed: If the request errors out, returns a
                non-success status, does not return JSON of ``expected_type``,
                or the payload is missing fields ``decode`` relies on.
        """
        try:
            response = self._http_get(url)
        except requests.RequestException as exc:
            raise ProviderRequestFailed(url, body=str(exc)) from exc

        if not 200 <= response.status_code < 300:
            raise ProviderRequestFailed(url, response.status_code, response.text)

        try:
            payload = response.json()
        except ValueError as exc:
            raise ProviderRequestFailed(url, response.status_code, response.text) from exc

        if not isinstance(payload, expected_type):
            raise ProviderRequestFailed(url, response.status_code, response.text)

        try:
            return decode(payload)
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            raise ProviderRequestFailed(url, response.status_code, response.text) from exc

    @abstractmethod
    def list_open_renovate_pull_requests(self) -> List[PullRequest]:
        """List open pull requests opened from renovate branches of this repository."""

    @abstractmethod
    def list_changed_files(self, pull_request: PullRequest) -> List[str]:
        """List every file path changed by ``pull_request``."""

    @abstractmethod
    def failure_deductions(self, error: ProviderRequestFailed) -> List[Deduction]:
        """Translate a failed pull request listing into the check's result."""


class AzureDevOpsClient(ProviderClient):
    """Azure DevOps Git pull request APIs, scoped to one project."""

    provider = Provider.AZURE_DEVOPS

    _API_VERSION = "7.0"

    def _build_url(self, path: str, query: str = "") -> str:
        """Build a fully qualified API URL from a path below ``_apis/git``."""
        identity = self._identity
        url = (
            f"https://dev.azure.com/{identity.organization}/{identity.project}"
            f"/_apis/git/{path.lstrip('/')}?api-version={self._API_VERSION}"
        )
        return f"{url}&{query}" if query else url

    def list_open_renovate_pull_requests(self) -> List[PullRequest]:
        """List active renovate pull requests targeting the bound repository.

        The pull request endpoint is project-scoped, so the repository is
        matched client-side on its name.
        """
        return self._get_json(
            self._build_url("pullrequests", "searchCriteria.status=active"),
            self._decode_pull_requests,
        )

    def _decode_pull_requests(self, payload: Dict[str, Any]) -> List[PullRequest]:
        pull_requests: List[PullRequest] = []

        for item in payload.get("value") or []:
            repository = item.get("repository") or {}
            source_ref_name = item.get("sourceRefName") or ""
            if repository.get("name") != self._identity.repository:
                continue
            if RENOVATE_BRANCH_MARKER not in source_ref_name:
                continue

            pull_requests.append(
                PullRequest(
                    id=int(item["pullRequestId"]),
                    source_branch_name=source_ref_name,
                    repository_name=str(repository["name"]),
                    repository_id=str(repository.get("id") or repository["name"]),
                )
            )

        return pull_requests

    def list_iterations(self, pull_request: PullRequest) -> List[Iteration]:
        """List the iterations (pushes) of a pull request."""
        return self._get_json(
            self._build_url(
                f"repositories/{pull_request.repository_id}/pullRequests/{pull_request.id}/iterations"
            ),
            lambda payload: [
                Iteration(id=int(item["id"])) for item in payload.get("value") or [] if "id" in item
            ],
        )

    def list_iteration_changes(self, pull_request: PullRequest, iteration: Iteration) -> List[ChangedFile]:
        """List the change entries recorded for one iteration of a pull request."""
        return self._get_json(
            self._build_url(
                f"repositories/{pull_request.repository_id}/pullRequests/{pull_request.id}"
                f"/iterations/{iteration.id}/changes"
            ),
            self._decode_changes,
        )

    @staticmethod
    def _decode_changes(payload: Dict[str, Any]) -> List[ChangedFile]:
        changed_files: List[ChangedFile] = []

        for entry in payload.get("changeEntries") or []:
            path = (entry.get("item") or {}).get("path")
            if path:
                changed_files.append(ChangedFile(path=str(path)))

        return changed_files

    def list_changed_files(self, pull_request: PullRequest) -> List[str]:
        """Union the changed paths of every iteration, in iteration order.

        A file touched by an early iteration counts even if the latest
        iteration no longer lists it.
        """
        paths: Dict[str, None] = {}
        for iteration in self.list_iterations(pull_request):
            for changed_file in self.list_iteration_changes(pull_request, iteration):
                paths.setdefault(changed_file.path, None)
        return list(paths)

    def failure_deductions(self, error: ProviderRequestFailed) -> List[Deduction]:
        logger.error(
            "Couldn't fetch open pull requests for %s; check debug output for response",
            self._identity,
        )
        logger.debug("response: %s %s", error.status_code, error.body, extra={"url": error.url})
        return []


class GitHubClient(ProviderClient):
    """GitHub REST v3 pull request APIs for one repository."""

    provider = Provider.GITHUB

    _API_BASE = "https://api.github.com"

    def _build_url(self, path: str) -> str:
        identity = self._identity
        return f"{self._API_BASE}/repos/{identity.organization}/{identity.repository}/{path.lstrip('/')}"

    def list_open_renovate_pull_requests(self) -> List[PullRequest]:
        return self._get_json(
            self._build_url("pulls?state=open"), self._decode_pull_requests, expected_type=list
        )

    def _decode_pull_requests(self, payload: List[Dict[str, Any]]) -> List[PullRequest]:
        pull_requests: List[PullRequest] = []

        for item in payload:
            head_ref = (item.get("head") or {}).get("ref") or ""
            if RENOVATE_BRANCH_MARKER not in head_ref:
                continue
            pull_requests.append(
                PullRequest(
                    id=int(item["number"]),
                    source_branch_name=head_ref,
                    repository_name=self._identity.repository,
                    repository_id=self._identity.repository,
                )
            )

        return pull_requests

    def list_changed_files(self, pull_request: PullRequest) -> List[str]:
        """GitHub has no iterations; the file list is one flat fetch per pull request."""
        return self._get_json(
            self._build_url(f"pulls/{pull_request.id}/files"),
            lambda payload: [str(item["filename"]) for item in payload if item.get("filename")],
            expected_type=list,
        )

    def failure_deductions(self, error: ProviderRequestFailed) -> List[Deduction]:
        """GitHub access may legitimately be unavailable; the failure itself is the result.

        Transport errors carry no status, which renders as an empty line.
        """
        status = "" if error.status_code is None else error.status_code
        return [
            Deduction.create(
                100,
                "Failed to get pull requests from %s%s%s%s%s",
                error.url,
                "&#013;",
                status,
                "&#013;",
                html.escape(error.body),
                audit_logger=logger,
            )
        ]


PROVIDER_CLIENTS: Dict[Provider, Type[ProviderClient]] = {
    Provider.AZURE_DEVOPS: AzureDevOpsClient,
    Provider.GITHUB: GitHubClient,
}


def create_provider_client(identity: RepositoryIdentity, http_get: HttpGet) -> ProviderClient:
    """Instantiate the client registered for the identity's provider."""
    return PROVIDER_CLIENTS[identity.provider](identity, http_get)
