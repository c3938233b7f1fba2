"""Authenticated HTTP access for provider REST APIs.

Provider clients never construct sessions themselves; they receive an
``HttpGet`` callable so live calls and test doubles are interchangeable.
"""

from __future__ import annotations

import threading
from typing import Callable, Dict, Optional

import requests
from requests.auth import HTTPBasicAuth

from .config import Config
from .models import Provider

HttpGet = Callable[[str], requests.Response]


def create_session(provider: Provider, config: Config) -> requests.Session:
    """Build a session carrying the run's credentials for ``provider``.

    Azure DevOps uses HTTP Basic with an empty user name and the PAT as password.
    GitHub uses a bearer token when one is configured and anonymous access
    otherwise.
    """
    session = requests.Session()
    session.headers.update({"Accept": "application/json"})

    if provider is Provider.AZURE_DEVOPS:
        session.auth = HTTPBasicAuth("", config.azure_pat)
    elif provider is Provider.GITHUB:
        session.headers.update({"Accept": "application/vnd.github+json"})
        if config.github_token:
            session.headers["Authorization"] = f"Bearer {config.github_token}"

    return session


def thread_local_http_get(
    session_factory: Callable[[], requests.Session],
    timeout_seconds: Optional[float] = None,
) -> HttpGet:
    """Wrap a session factory so every calling thread gets its own session.

    ``requests.Session`` is not thread-safe, and changed-file lookups run on a
    worker pool. A session is created lazily on a thread's first call and
    reused for every later call from that thread.
    """
    local = threading.local()

    def http_get(url: str) -> requests.Response:
        session = getattr(local, "session", None)
        if session is None:
            session = local.session = session_factory()
        return session.get(url, timeout=timeout_seconds)

    return http_get


def create_http_gets(config: Config) -> Dict[Provider, HttpGet]:
    """Create one authenticated HTTP-call function per provider for a run."""
    return {
        provider: thread_local_http_get(
            lambda provider=provider: create_session(provider, config), config.timeout_seconds
        )
        for provider in Provider
    }
