"""Tests for provider REST clients with mocked HTTP."""

import sys
from pathlib import Path
from unittest.mock import Mock

import pytest
import requests

# Add src directory to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from scorecard.errors import ProviderRequestFailed
from scorecard.models import Provider, PullRequest, RepositoryIdentity
from scorecard.providers import AzureDevOpsClient, GitHubClient, create_provider_client
from scorecard.scanner import scan_pull_requests

AZURE_API = "https://dev.azure.com/acme/widgets/_apis/git"
PR_LIST_URL = f"{AZURE_API}/pullrequests?api-version=7.0&searchCriteria.status=active"
GITHUB_API = "https://api.github.com/repos/acme/svc1"

AZURE_IDENTITY = RepositoryIdentity(Provider.AZURE_DEVOPS, "acme", "widgets", "svc1")
GITHUB_IDENTITY = RepositoryIdentity(Provider.GITHUB, "acme", "", "svc1")


def _response(status_code: int, payload=None, text: str = ""):
    response = Mock()
    response.status_code = status_code
    response.text = text
    response.json.return_value = payload if payload is not None else {}
    return response


def _router(responses: dict):
    """Build an HttpGet that serves canned responses keyed by URL."""
    return Mock(side_effect=lambda url: responses[url])


def _azure_pr(pr_id: int, branch: str, repo_name: str = "svc1", repo_id: str = "repo-guid") -> dict:
    return {
        "pullRequestId": pr_id,
        "sourceRefName": f"refs/heads/{branch}",
        "repository": {"id": repo_id, "name": repo_name},
    }


def _azure_pull_request(pr_id: int = 7) -> PullRequest:
    return PullRequest(
        id=pr_id,
        source_branch_name="refs/heads/renovate/widget-1.2.3",
        repository_name="svc1",
        repository_id="repo-guid",
    )


def test_azure_list_filters_repository_and_renovate_branch():
    """Verify only renovate branches of the bound repository are kept, in API order."""
    http_get = _router(
        {
            PR_LIST_URL: _response(
                200,
                {
                    "value": [
                        _azure_pr(1, "renovate/widget-1.2.3"),
                        _azure_pr(2, "feature/login"),
                        _azure_pr(3, "renovate/left-pad-2.0.0", repo_name="svc2"),
                        _azure_pr(4, "renovate/lock-file-maintenance"),
                    ]
                },
            )
        }
    )
    client = AzureDevOpsClient(AZURE_IDENTITY, http_get)

    pull_requests = client.list_open_renovate_pull_requests()

    assert [pr.id for pr in pull_requests] == [1, 4]
    assert pull_requests[0].source_branch_name == "refs/heads/renovate/widget-1.2.3"
    assert pull_requests[0].repository_id == "repo-guid"
    http_get.assert_called_once_with(PR_LIST_URL)


def test_azure_changed_files_union_all_iterations_in_order():
    """Verify files from every iteration are unioned, keeping first occurrence order."""
    base = f"{AZURE_API}/repositories/repo-guid/pullRequests/7/iterations"
    http_get = _router(
        {
            f"{base}?api-version=7.0": _response(200, {"value": [{"id": 1}, {"id": 2}]}),
            f"{base}/1/changes?api-version=7.0": _response(
                200,
                {
                    "changeEntries": [
                        {"item": {"path": "/services/svc1/pkg.json"}},
                        {"item": {"path": "/services/svc1/lock.json"}},
                    ]
                },
            ),
            f"{base}/2/changes?api-version=7.0": _response(
                200,
                {
                    "changeEntries": [
                        {"item": {"path": "/services/svc1/lock.json"}},
                        {"item": {"path": "/README.md"}},
                        {"item": {}},
                    ]
                },
            ),
        }
    )
    client = AzureDevOpsClient(AZURE_IDENTITY, http_get)

    paths = client.list_changed_files(_azure_pull_request())

    assert paths == ["/services/svc1/pkg.json", "/services/svc1/lock.json", "/README.md"]
    assert http_get.call_count == 3


def test_azure_non_success_status_raises_provider_request_failed():
    """Verify a non-2xx response surfaces as ProviderRequestFailed with its detail."""
    http_get = _router({PR_LIST_URL: _response(401, text="Unauthorized")})
    client = AzureDevOpsClient(AZURE_IDENTITY, http_get)

    with pytest.raises(ProviderRequestFailed) as exc_info:
        client.list_open_renovate_pull_requests()

    assert exc_info.value.status_code == 401
    assert exc_info.value.body == "Unauthorized"
    assert exc_info.value.url == PR_LIST_URL


def test_azure_transport_error_raises_provider_request_failed():
    """Verify network failures are translated instead of escaping as requests errors."""
    http_get = Mock(side_effect=requests.ConnectionError("connection refused"))
    client = AzureDevOpsClient(AZURE_IDENTITY, http_get)

    with pytest.raises(ProviderRequestFailed) as exc_info:
        client.list_open_renovate_pull_requests()

    assert exc_info.value.status_code is None
    assert "connection refused" in exc_info.value.body


def test_azure_unexpected_payload_shape_raises_provider_request_failed():
    """Verify a JSON list where an object is expected is rejected."""
    http_get = _router({PR_LIST_URL: _response(200, [])})
    client = AzureDevOpsClient(AZURE_IDENTITY, http_get)

    with pytest.raises(ProviderRequestFailed):
        client.list_open_renovate_pull_requests()


def test_azure_pull_request_missing_id_raises_provider_request_failed():
    """Verify a malformed pull request entry is reported as a failed request, not a KeyError."""
    malformed = {"sourceRefName": "refs/heads/renovate/widget-1.2.3", "repository": {"name": "svc1"}}
    http_get = _router({PR_LIST_URL: _response(200, {"value": [malformed]}, text="{...}")})
    client = AzureDevOpsClient(AZURE_IDENTITY, http_get)

    with pytest.raises(ProviderRequestFailed) as exc_info:
        client.list_open_renovate_pull_requests()

    assert exc_info.value.status_code == 200
    assert exc_info.value.url == PR_LIST_URL
    assert isinstance(exc_info.value.__cause__, KeyError)


def test_azure_null_value_list_means_no_pull_requests():
    """Verify an explicit null pull request list is treated as empty."""
    http_get = _router({PR_LIST_URL: _response(200, {"value": None})})
    client = AzureDevOpsClient(AZURE_IDENTITY, http_get)

    assert client.list_open_renovate_pull_requests() == []


def test_azure_non_numeric_iteration_id_raises_provider_request_failed():
    """Verify an unparseable iteration id is reported as a failed request."""
    iterations_url = f"{AZURE_API}/repositories/repo-guid/pullRequests/7/iterations?api-version=7.0"
    http_get = _router({iterations_url: _response(200, {"value": [{"id": "latest"}]})})
    client = AzureDevOpsClient(AZURE_IDENTITY, http_get)

    with pytest.raises(ProviderRequestFailed) as exc_info:
        client.list_iterations(_azure_pull_request())

    assert isinstance(exc_info.value.__cause__, ValueError)


def test_azure_failing_changes_call_of_later_iteration_abstains():
    """Verify a failed changes call for any iteration makes the whole scan abstain."""
    base = f"{AZURE_API}/repositories/repo-guid/pullRequests/7/iterations"
    http_get = _router(
        {
            PR_LIST_URL: _response(200, {"value": [_azure_pr(7, "renovate/widget-1.2.3")]}),
            f"{base}?api-version=7.0": _response(200, {"value": [{"id": 1}, {"id": 2}]}),
            f"{base}/1/changes?api-version=7.0": _response(
                200, {"changeEntries": [{"item": {"path": "/services/svc1/pkg.json"}}]}
            ),
            f"{base}/2/changes?api-version=7.0": _response(503, text="Service Unavailable"),
        }
    )
    client = AzureDevOpsClient(AZURE_IDENTITY, http_get)

    assert scan_pull_requests(AZURE_IDENTITY, client, "services/svc1", max_workers=1) == []
    http_get.assert_any_call(f"{base}/2/changes?api-version=7.0")


def test_azure_failure_deductions_are_empty():
    """Verify Azure DevOps failures make the check abstain."""
    client = AzureDevOpsClient(AZURE_IDENTITY, Mock())

    assert client.failure_deductions(ProviderRequestFailed(PR_LIST_URL, 500, "boom")) == []


def test_github_list_and_files_use_flat_endpoints():
    """Verify GitHub pull requests are filtered by head ref and files fetched per PR."""
    http_get = _router(
        {
            f"{GITHUB_API}/pulls?state=open": _response(
                200,
                [
                    {"number": 12, "head": {"ref": "renovate/requests-2.x"}},
                    {"number": 13, "head": {"ref": "fix/typo"}},
                ],
            ),
            f"{GITHUB_API}/pulls/12/files": _response(
                200,
                [{"filename": "services/svc1/requirements.txt"}, {"filename": "poetry.lock"}],
            ),
        }
    )
    client = GitHubClient(GITHUB_IDENTITY, http_get)

    pull_requests = client.list_open_renovate_pull_requests()
    paths = client.list_changed_files(pull_requests[0])

    assert [pr.id for pr in pull_requests] == [12]
    assert pull_requests[0].repository_name == "svc1"
    assert paths == ["services/svc1/requirements.txt", "poetry.lock"]


def test_github_failure_deductions_embed_status_and_escaped_body():
    """Verify a failed GitHub listing becomes one weight-100 deduction."""
    client = GitHubClient(GITHUB_IDENTITY, Mock())
    error = ProviderRequestFailed(f"{GITHUB_API}/pulls?state=open", 403, "<h1>Forbidden</h1>")

    deductions = client.failure_deductions(error)

    assert len(deductions) == 1
    assert deductions[0].weight == 100
    assert deductions[0].message == (
        f"Failed to get pull requests from {GITHUB_API}/pulls?state=open"
        "&#013;403&#013;&lt;h1&gt;Forbidden&lt;/h1&gt;"
    )


def test_github_failure_deductions_leave_status_empty_for_transport_errors():
    """Verify a transport failure without a status renders no placeholder status."""
    client = GitHubClient(GITHUB_IDENTITY, Mock())
    error = ProviderRequestFailed(f"{GITHUB_API}/pulls?state=open", body="connection reset")

    deductions = client.failure_deductions(error)

    assert "None" not in deductions[0].message
    assert deductions[0].message == (
        f"Failed to get pull requests from {GITHUB_API}/pulls?state=open&#013;&#013;connection reset"
    )


def test_github_malformed_pull_request_list_becomes_failure_deduction():
    """Verify a list of non-objects is handled like any other failed GitHub listing."""
    http_get = _router({f"{GITHUB_API}/pulls?state=open": _response(200, [42], text="[42]")})
    client = GitHubClient(GITHUB_IDENTITY, http_get)

    deductions = scan_pull_requests(GITHUB_IDENTITY, client, "services/svc1/requirements.txt")

    assert len(deductions) == 1
    assert deductions[0].weight == 100
    assert deductions[0].message.endswith("&#013;200&#013;[42]")


def test_github_failing_files_call_abstains():
    """Verify a failed GitHub files call makes the scan abstain instead of deducting."""
    http_get = _router(
        {
            f"{GITHUB_API}/pulls?state=open": _response(
                200, [{"number": 12, "head": {"ref": "renovate/requests-2.x"}}]
            ),
            f"{GITHUB_API}/pulls/12/files": _response(500, text="Internal Server Error"),
        }
    )
    client = GitHubClient(GITHUB_IDENTITY, http_get)

    assert scan_pull_requests(GITHUB_IDENTITY, client, "services/svc1/requirements.txt") == []


def test_create_provider_client_dispatches_on_provider():
    """Verify the static registry maps each provider to its client."""
    assert isinstance(create_provider_client(AZURE_IDENTITY, Mock()), AzureDevOpsClient)
    assert isinstance(create_provider_client(GITHUB_IDENTITY, Mock()), GitHubClient)


def test_client_rejects_identity_of_other_provider():
    """Verify a client cannot be bound to another provider's repository."""
    with pytest.raises(ValueError):
        GitHubClient(AZURE_IDENTITY, Mock())
