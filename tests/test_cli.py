"""Tests for the karma-ci CLI."""

import json
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest
from typer.testing import CliRunner

from karma_ci import __version__
from karma_ci.cli import app
from karma_ci.notifications import NotificationStatus

runner = CliRunner()

DISK_LOG = "Run npm run build\nFATAL: No space left on device\nError: Process completed"

# Action inputs that must not leak in from the developer's environment.
CLEAN_ACTION_ENV: dict[str, str | None] = {
    "INPUT_MAX_RETRIES": None,
    "INPUT_BASE_DELAY_MS": None,
    "INPUT_SLACK_WEBHOOK": None,
    "INPUT_DISCORD_WEBHOOK": None,
    "INPUT_ANALYZE_LOGS": None,
    "INPUT_AUTO_HEAL": None,
    "GITHUB_OUTPUT": None,
    "GITHUB_STEP_SUMMARY": None,
    "GITHUB_SERVER_URL": None,
    "GITHUB_REPOSITORY": None,
    "GITHUB_RUN_ID": None,
}


@pytest.fixture
def log_file(tmp_path: Path) -> Path:
    path = tmp_path / "job.log"
    path.write_text(DISK_LOG)
    return path


# ============================================================================
# Global options
# ============================================================================


class TestGlobalOptions:
    def test_version(self) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"karma-ci v{__version__}" in result.output

    def test_invalid_log_level(self) -> None:
        result = runner.invoke(app, ["--log-level", "LOUD", "patterns"])
        assert result.exit_code == 2

    def test_help_lists_commands(self) -> None:
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        for command in ("analyze", "patterns", "action"):
            assert command in result.output


# ============================================================================
# analyze
# ============================================================================


class TestAnalyzeCommand:
    def test_json_output(self, log_file: Path) -> None:
        result = runner.invoke(app, ["analyze", str(log_file), "--json"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["matched"] is True
        assert data["primary"]["id"] == "infra-disk"
        assert data["retryable"] is True
        assert "suggestions" not in data

    def test_json_with_suggestions(self, log_file: Path) -> None:
        result = runner.invoke(app, ["analyze", str(log_file), "--json", "--suggest"])

        data = json.loads(result.stdout)
        assert data["suggestions"][0]["commands"] == [
            "docker system prune -af",
            "npm cache clean --force",
        ]

    def test_reads_stdin(self) -> None:
        result = runner.invoke(app, ["analyze", "--json"], input="connect ETIMEDOUT 10.0.0.1:443\n")

        assert result.exit_code == 0
        assert json.loads(result.stdout)["primary"]["id"] == "timeout-network"

    def test_rich_output(self, log_file: Path) -> None:
        result = runner.invoke(app, ["analyze", str(log_file), "--suggest"])

        assert result.exit_code == 0
        assert "Disk Space Full" in result.output
        assert "FATAL: No space left on device" in result.output
        assert "$ docker system prune -af" in result.output

    def test_no_match(self, tmp_path: Path) -> None:
        path = tmp_path / "clean.log"
        path.write_text("All good\n")

        result = runner.invoke(app, ["analyze", str(path)])

        assert result.exit_code == 0
        assert "No known failure pattern detected." in result.output

    def test_stdin_with_invalid_utf8(self) -> None:
        result = runner.invoke(app, ["analyze", "-", "--json"], input=b"npm ERR! \xff\xfe broken\n")

        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["primary"]["id"] == "dep-install-fail"
        assert "\ufffd" in data["snippets"][0]

    def test_missing_file(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["analyze", str(tmp_path / "nope.log")])

        assert result.exit_code == 2
        assert "Error:" in result.output


# ============================================================================
# patterns
# ============================================================================


class TestPatternsCommand:
    def test_json_lists_catalog(self) -> None:
        result = runner.invoke(app, ["patterns", "--json"])

        assert result.exit_code == 0
        assert len(json.loads(result.stdout)) == 49

    def test_category_filter(self) -> None:
        result = runner.invoke(app, ["patterns", "--category", "timeout", "--json"])

        ids = [s["id"] for s in json.loads(result.stdout)]
        assert ids == ["timeout-global", "timeout-network", "timeout-docker"]

    def test_table_output(self) -> None:
        result = runner.invoke(app, ["patterns", "--category", "resource"])

        assert result.exit_code == 0
        assert "res-inode" in result.output
        assert "4 signature(s)" in result.output

    def test_unknown_category(self) -> None:
        result = runner.invoke(app, ["patterns", "--category", "weather"])
        assert result.exit_code == 2


# ============================================================================
# action
# ============================================================================


class TestActionCommand:
    def test_writes_outputs_and_report(self, tmp_path: Path) -> None:
        output_file = tmp_path / "output"
        summary_file = tmp_path / "summary.md"
        env = {
            **CLEAN_ACTION_ENV,
            "KARMA_CI_LOG": DISK_LOG,
            "GITHUB_OUTPUT": str(output_file),
            "GITHUB_STEP_SUMMARY": str(summary_file),
        }

        result = runner.invoke(app, ["action"], env=env)

        assert result.exit_code == 0, result.output
        outputs = output_file.read_text().splitlines()
        assert outputs[0] == "failure-pattern=infra-disk"
        assert outputs[1].startswith("suggestion=Free disk space.")
        assert outputs[2] == "retryable=true"
        assert "# Karma CI Healing Report" in result.output
        assert summary_file.read_text().startswith("# Karma CI Healing Report")

    def test_no_match_writes_empty_outputs(self, tmp_path: Path) -> None:
        output_file = tmp_path / "output"
        env = {**CLEAN_ACTION_ENV, "KARMA_CI_LOG": "", "GITHUB_OUTPUT": str(output_file)}

        result = runner.invoke(app, ["action"], env=env)

        assert result.exit_code == 0
        assert output_file.read_text() == "failure-pattern=\nsuggestion=\nretryable=false\n"

    def test_analyze_logs_disabled(self, tmp_path: Path) -> None:
        output_file = tmp_path / "output"
        env = {
            **CLEAN_ACTION_ENV,
            "KARMA_CI_LOG": DISK_LOG,
            "INPUT_ANALYZE_LOGS": "false",
            "GITHUB_OUTPUT": str(output_file),
        }

        runner.invoke(app, ["action"], env=env)

        assert output_file.read_text().startswith("failure-pattern=\n")

    def test_log_file_option(self, tmp_path: Path, log_file: Path) -> None:
        output_file = tmp_path / "output"
        env = {**CLEAN_ACTION_ENV, "KARMA_CI_LOG": None, "GITHUB_OUTPUT": str(output_file)}

        result = runner.invoke(app, ["action", "--log-file", str(log_file)], env=env)

        assert result.exit_code == 0
        assert "failure-pattern=infra-disk" in output_file.read_text()

    def test_sends_notifications_with_run_url(self) -> None:
        env = {
            **CLEAN_ACTION_ENV,
            "KARMA_CI_LOG": DISK_LOG,
            "INPUT_SLACK_WEBHOOK": "https://hooks.slack.com/services/T/B/X",
            "GITHUB_SERVER_URL": "https://github.com",
            "GITHUB_REPOSITORY": "acme/app",
            "GITHUB_RUN_ID": "42",
        }
        send = AsyncMock(return_value=True)

        with patch("karma_ci.notifications.webhook.WebhookNotifier.send", new=send):
            result = runner.invoke(app, ["action"], env=env)

        assert result.exit_code == 0, result.output
        send.assert_awaited_once()
        payload = send.call_args.args[0]
        assert payload.title == "Karma CI Report"
        assert payload.status == NotificationStatus.FAILURE
        assert payload.message == "Detected: Disk Space Full (critical)"
        assert payload.details is not None and "No space left" in payload.details
        assert payload.url == "https://github.com/acme/app/actions/runs/42"

    def test_invalid_input_exits_2(self) -> None:
        env = {**CLEAN_ACTION_ENV, "INPUT_MAX_RETRIES": "many"}

        result = runner.invoke(app, ["action"], env=env)

        assert result.exit_code == 2
        assert "max-retries" in result.output

    def test_yaml_config(self, tmp_path: Path) -> None:
        config_file = tmp_path / "karma.yaml"
        config_file.write_text("auto_heal: false\nlog:\n  level: ERROR\n")
        env = {**CLEAN_ACTION_ENV, "KARMA_CI_LOG": DISK_LOG}

        result = runner.invoke(app, ["action", "--config", str(config_file)], env=env)

        assert result.exit_code == 0
        assert "## Suggestions" not in result.output

    def test_retry_plan_outputs(self, tmp_path: Path) -> None:
        output_file = tmp_path / "output"
        env = {
            **CLEAN_ACTION_ENV,
            "KARMA_CI_LOG": DISK_LOG,
            "INPUT_MAX_RETRIES": "2",
            "GITHUB_OUTPUT": str(output_file),
        }

        result = runner.invoke(app, ["action"], env=env)

        assert result.exit_code == 0, result.output
        outputs = dict(line.split("=", 1) for line in output_file.read_text().splitlines())
        assert outputs["retryable"] == "true"
        assert outputs["max-retries"] == "2"
        delays = [int(d) for d in outputs["retry-delays-ms"].split(",")]
        assert len(delays) == 2
        assert all(0 <= d <= 30_000 * 1.5 for d in delays)

    def test_zero_retry_budget_disables_retry(self, tmp_path: Path) -> None:
        output_file = tmp_path / "output"
        env = {
            **CLEAN_ACTION_ENV,
            "KARMA_CI_LOG": DISK_LOG,
            "INPUT_MAX_RETRIES": "0",
            "GITHUB_OUTPUT": str(output_file),
        }

        result = runner.invoke(app, ["action"], env=env)

        assert result.exit_code == 0, result.output
        outputs = output_file.read_text().splitlines()
        assert "failure-pattern=infra-disk" in outputs
        assert "retryable=false" in outputs
        assert not any(line.startswith("max-retries=") for line in outputs)
