"""Tests for application orchestration in the main module."""

import sys
from argparse import Namespace
from pathlib import Path
from unittest.mock import Mock, patch

# Add src directory to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from scorecard.config import Config
from scorecard.errors import AuthenticationError, ConfigurationError
from scorecard.main import build_checks, orchestrate_scorecard_generation


def _args(**overrides) -> Namespace:
    values = dict(
        working_directory="/src/repo",
        output_directory="/wiki",
        project_glob="*.csproj",
        max_workers=4,
        verbose=False,
    )
    values.update(overrides)
    return Namespace(**values)


def _config() -> Config:
    return Config(
        working_directory=Path("/src/repo"),
        output_directory=Path("/wiki"),
        azure_pat="secret",
    )


def test_orchestrate_scorecard_generation_success(capsys):
    """Verify orchestration returns 0 and wires components correctly on success."""
    config = _config()
    checks = {"Gold": [Mock()]}
    run_info = Mock()
    visualizer = Mock()
    visualizer.visualize.return_value = [Path("/wiki/Scorecard.md")]

    with patch("scorecard.main.parse_args", return_value=_args()) as parse_args_mock, patch(
        "scorecard.main.configure_logging"
    ), patch("scorecard.main.load_config", return_value=config) as load_config_mock, patch(
        "scorecard.main.discover_services", return_value=["services/svc1"]
    ) as discover_mock, patch(
        "scorecard.main.build_checks", return_value=checks
    ), patch(
        "scorecard.main.run_checks", return_value=run_info
    ) as run_checks_mock, patch(
        "scorecard.main.AzureWikiTableVisualizer", return_value=visualizer
    ) as visualizer_ctor_mock:
        exit_code = orchestrate_scorecard_generation()

    assert exit_code == 0
    parse_args_mock.assert_called_once_with(None)
    load_config_mock.assert_called_once_with(
        working_directory="/src/repo",
        output_directory="/wiki",
        project_glob="*.csproj",
        max_workers=4,
    )
    discover_mock.assert_called_once_with(config.working_directory, "*.csproj")
    run_checks_mock.assert_called_once_with(config.working_directory, ["services/svc1"], checks)
    visualizer_ctor_mock.assert_called_once_with(config.output_directory)
    visualizer.visualize.assert_called_once_with(run_info)
    assert "Scorecard written to" in capsys.readouterr().out


def test_orchestrate_scorecard_generation_missing_pat_returns_auth_error():
    """Verify authentication failures return the authentication exit code."""
    with patch("scorecard.main.parse_args", return_value=_args()), patch(
        "scorecard.main.configure_logging"
    ), patch(
        "scorecard.main.load_config",
        side_effect=AuthenticationError("Missing required Azure DevOps Personal Access Token."),
    ):
        exit_code = orchestrate_scorecard_generation()

    assert exit_code == 3


def test_orchestrate_scorecard_generation_configuration_error_returns_config_exit_code():
    """Verify invalid configuration returns the configuration exit code."""
    with patch("scorecard.main.parse_args", return_value=_args()), patch(
        "scorecard.main.configure_logging"
    ), patch("scorecard.main.load_config", side_effect=ConfigurationError("bad directory")):
        exit_code = orchestrate_scorecard_generation()

    assert exit_code == 2


def test_orchestrate_scorecard_generation_unexpected_error_returns_generic_exit_code():
    """Verify unexpected exceptions are mapped to the generic non-zero exit code."""
    with patch("scorecard.main.parse_args", side_effect=RuntimeError("boom")):
        exit_code = orchestrate_scorecard_generation()

    assert exit_code == 1


def test_build_checks_groups_checks_by_tier():
    """Verify the default check groups and their order."""
    checks = build_checks(_config())

    assert list(checks) == ["Gold", "Silver"]
    assert [check.name for check in checks["Gold"]] == ["ImplicitAssemblyInfo"]
    assert [check.name for check in checks["Silver"]] == [
        "PendingRenovateAzurePRs",
        "RemainingDependencyUpgrades",
    ]
