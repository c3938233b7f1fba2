"""Resolve source-control remotes into provider-qualified repository identities.

Remote strings come straight from ``git remote -v`` and may carry the remote
name, irregular tab/space separators and ``(fetch)``/``(push)`` annotations.
Supported layouts:

- ``git@github.com:{org}/{repo}.git`` and ``https://github.com/{org}/{repo}.git``
- ``git@ssh.dev.azure.com:v3/{org}/{project}/{repo}``
- ``{org}@vs-ssh.visualstudio.com:v3/{org}/{project}/{repo}``
- ``https://dev.azure.com/{org}/{project}/_git/{repo}``
- ``https://{org}.visualstudio.com/{project}/_git/{repo}``
"""

from __future__ import annotations

import logging
import subprocess
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from .errors import NoRemoteFound, UnrecognizedRemoteFormat
from .models import Provider, RepositoryIdentity

logger = logging.getLogger(__name__)


class Transport(Enum):
    HTTPS = "https"
    SSH = "ssh"


class Host(Enum):
    AZURE = "dev.azure.com"
    VISUAL_STUDIO = "visualstudio.com"


def _strip_annotations(remote: str) -> str:
    """Return the URL token of a raw remote line.

    ``origin\\thttps://host/path (fetch)`` becomes ``https://host/path``.
    """
    tokens = [token for token in remote.replace("\t", " ").split(" ") if token]
    while tokens and tokens[-1].startswith("(") and tokens[-1].endswith(")"):
        tokens.pop()
    return tokens[-1] if tokens else ""


def _classify_transport(url: str) -> Optional[Transport]:
    if url.startswith("https://"):
        return Transport.HTTPS
    if "@" in url or url.startswith("ssh://"):
        return Transport.SSH
    return None


def _classify_host(url: str) -> Optional[Host]:
    if Host.AZURE.value in url:
        return Host.AZURE
    if Host.VISUAL_STUDIO.value in url:
        return Host.VISUAL_STUDIO
    return None


def _path_segment(parts: List[str], index: int, url: str) -> str:
    try:
        segment = parts[index]
    except IndexError as exc:
        raise UnrecognizedRemoteFormat(f"Unknown URL format: {url}") from exc
    if not segment:
        raise UnrecognizedRemoteFormat(f"Unknown URL format: {url}")
    return segment


def _git_index(parts: List[str], url: str, minimum: int) -> int:
    """Locate the ``_git`` marker; the project must sit between host and marker."""
    try:
        index = parts.index("_git")
    except ValueError as exc:
        raise UnrecognizedRemoteFormat(f"Unknown URL format: {url}") from exc
    if index < minimum:
        raise UnrecognizedRemoteFormat(f"Unknown URL format: {url}")
    return index


def _ssh_segments(url: str) -> Tuple[str, str, str]:
    # SSH layouts end in v3/{org}/{project}/{repo} on both hosts.
    parts = url.split("/")
    if len(parts) < 4:
        raise UnrecognizedRemoteFormat(f"Unknown URL format: {url}")
    return (
        _path_segment(parts, -3, url),
        _path_segment(parts, -2, url),
        _path_segment(parts, -1, url),
    )


def _https_azure_segments(url: str) -> Tuple[str, str, str]:
    parts = url.split("/")
    git_index = _git_index(parts, url, minimum=5)
    return (
        _path_segment(parts, 3, url),
        _path_segment(parts, git_index - 1, url),
        _path_segment(parts, git_index + 1, url),
    )


def _https_visual_studio_segments(url: str) -> Tuple[str, str, str]:
    # The legacy host carries the organization in the hostname.
    parts = url.split("/")
    host = _path_segment(parts, 2, url).rsplit("@", 1)[-1]
    git_index = _git_index(parts, url, minimum=4)
    return (
        host.split(".")[0],
        _path_segment(parts, git_index - 1, url),
        _path_segment(parts, git_index + 1, url),
    )


_AZURE_LAYOUTS: Dict[Tuple[Transport, Host], Callable[[str], Tuple[str, str, str]]] = {
    (Transport.SSH, Host.AZURE): _ssh_segments,
    (Transport.SSH, Host.VISUAL_STUDIO): _ssh_segments,
    (Transport.HTTPS, Host.AZURE): _https_azure_segments,
    (Transport.HTTPS, Host.VISUAL_STUDIO): _https_visual_studio_segments,
}


def _resolve_github(url: str) -> RepositoryIdentity:
    if "://" in url:
        # https://github.com/{org}/{repo}.git or ssh://git@github.com/{org}/{repo}.git
        parts = url.split("/")
        organization = _path_segment(parts, 3, url)
        repository = _path_segment(parts, 4, url)
    else:
        # git@github.com:{org}/{repo}.git
        parts = url.split("/")
        organization = _path_segment(parts[0].split(":"), 1, url)
        repository = _path_segment(parts, 1, url)

    return RepositoryIdentity(
        provider=Provider.GITHUB,
        organization=organization,
        project="",
        repository=repository.removesuffix(".git"),
    )


def resolve(remote_url: str) -> Optional[RepositoryIdentity]:
    """Resolve a raw remote URL into a repository identity.

    Args:
        remote_url: A remote URL or one line of ``git remote -v`` output.

    Returns:
        The resolved ``RepositoryIdentity``, or ``None`` when the transport or
        host is not one this tool knows about.

    Raises:
        UnrecognizedRemoteFormat: If the host is known but the URL path does not
            match any supported layout.
    """
    url = _strip_annotations(remote_url)
    if not url:
        return None

    if "github" in url:
        return _resolve_github(url)

    transport = _classify_transport(url)
    host = _classify_host(url)
    if transport is None or host is None:
        return None

    organization, project, repository = _AZURE_LAYOUTS[(transport, host)](url)
    return RepositoryIdentity(
        provider=Provider.AZURE_DEVOPS,
        organization=organization,
        project=project,
        repository=repository,
    )


def locate_repository(
    remote_lines: Iterable[str],
    provider: Optional[Provider] = None,
) -> RepositoryIdentity:
    """Pick the repository identity a working copy belongs to.

    Every remote line is resolved; duplicates (the same remote listed for fetch
    and push) collapse into one identity. The first identity wins.

    Args:
        remote_lines: Raw remote lines in the order the remote listing returned them.
        provider: Only consider identities hosted by this provider.

    Raises:
        UnrecognizedRemoteFormat: If a remote on a known host has an unknown layout.
        NoRemoteFound: If no remote resolves.
    """
    identities: List[RepositoryIdentity] = []
    for line in remote_lines:
        identity = resolve(line)
        if identity is None:
            continue
        if provider is not None and identity.provider is not provider:
            continue
        if identity not in identities:
            identities.append(identity)

    if not identities:
        raise NoRemoteFound("No supported remotes found")

    chosen = identities[0]
    if len(identities) > 1:
        logger.warning(
            "Multiple remotes found; using %s",
            chosen,
            extra={"remote_count": len(identities)},
        )
    return chosen


def read_git_remotes(directory: Path) -> List[str]:
    """Return the lines of ``git remote -v`` run inside ``directory``."""
    try:
        completed = subprocess.run(
            ["git", "-C", str(directory), "remote", "-v"],
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            check=False,
        )
    except OSError as exc:
        logger.error("Could not run git in %s: %s", directory, exc)
        return []

    if completed.returncode != 0:
        logger.debug(
            "git remote -v failed",
            extra={"directory": str(directory), "stderr": completed.stderr.strip()},
        )
        return []

    return [line for line in completed.stdout.splitlines() if line.strip()]
