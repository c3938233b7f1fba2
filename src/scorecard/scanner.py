"""Detection of open renovate pull requests touching a checked path.

Business logic:
- List open renovate pull requests through the bound provider client.
- Fetch every changed path of each pull request.
- A pull request is relevant when one of its changed paths matches the target
  under the provider's rule.
- Each relevant pull request costs ``DEDUCTION_PER_ACTIVE_PULL_REQUEST`` points;
  several relevant pull requests stack.

Clamping the total lives in :func:`scorecard.scoring.score_check`; the scanner
only reports raw deductions.
"""

from __future__ import annotations

import logging
import posixpath
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Dict, List

from .deductions import Deduction
from .errors import ProviderRequestFailed
from .models import Provider, PullRequest, RepositoryIdentity
from .providers import ProviderClient

logger = logging.getLogger(__name__)

DEDUCTION_PER_ACTIVE_PULL_REQUEST = 20


def _normalize(path: str) -> str:
    return path.replace("\\", "/").strip("/")


def _touches_service_directory(changed_path: str, target_path: str) -> bool:
    """Azure DevOps checks scope a whole service directory."""
    return _normalize(target_path) in changed_path.replace("\\", "/")


def _touches_file_name(changed_path: str, target_path: str) -> bool:
    """GitHub checks scope a single dependency manifest."""
    return changed_path.endswith(posixpath.basename(_normalize(target_path)))


RELEVANCE_RULES: Dict[Provider, Callable[[str, str], bool]] = {
    Provider.AZURE_DEVOPS: _touches_service_directory,
    Provider.GITHUB: _touches_file_name,
}


def scan_pull_requests(
    identity: RepositoryIdentity,
    client: ProviderClient,
    target_path: str,
    max_workers: int = 4,
) -> List[Deduction]:
    """Deduct points for every open renovate pull request touching ``target_path``.

    Args:
        identity: Repository the pull requests belong to.
        client: Provider client bound to ``identity``.
        target_path: Service directory (Azure DevOps) or project file (GitHub)
            relative to the repository root.
        max_workers: Pull requests whose changed files are fetched concurrently.

    Returns:
        Deductions in pull request order as returned by the provider. Empty when
        a changed-file lookup fails; the provider's failure deductions when the
        pull request listing itself fails.
    """
    try:
        pull_requests = client.list_open_renovate_pull_requests()
    except ProviderRequestFailed as exc:
        return client.failure_deductions(exc)

    matches = RELEVANCE_RULES[identity.provider]
    target_name = posixpath.basename(_normalize(target_path))

    try:
        changed_files_per_pull_request = _fetch_changed_files(client, pull_requests, max_workers)
    except ProviderRequestFailed as exc:
        logger.error(
            "Couldn't fetch file changes for %s in %s; check debug output for response",
            identity,
            target_path,
        )
        logger.debug("response: %s %s", exc.status_code, exc.body, extra={"url": exc.url})
        return []

    deductions: List[Deduction] = []
    for pull_request, changed_files in zip(pull_requests, changed_files_per_pull_request):
        if not any(matches(changed_file, target_path) for changed_file in changed_files):
            continue

        deductions.append(
            Deduction.create(
                DEDUCTION_PER_ACTIVE_PULL_REQUEST,
                "Active pull request #%s in %s is renovating %s",
                pull_request.id,
                identity.display_name,
                target_name,
                audit_logger=logger,
            )
        )

    return deductions


def _fetch_changed_files(
    client: ProviderClient,
    pull_requests: List[PullRequest],
    max_workers: int,
) -> List[List[str]]:
    """Fetch changed files of independent pull requests, preserving their order."""
    if max_workers <= 1 or len(pull_requests) <= 1:
        return [client.list_changed_files(pull_request) for pull_request in pull_requests]

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        return list(executor.map(client.list_changed_files, pull_requests))
