"""Tests for the end-to-end review run with a fake runner and fake client."""

from unittest.mock import MagicMock

import pytest

from adolens_core.context import ITERATION_DETAILS_FILE, PR_DETAILS_FILE
from adolens_core.errors import (
    AuthenticationError,
    ConfigurationError,
    NotFoundError,
    PreflightError,
    ReviewTimeoutError,
    ValidationError,
)
from adolens_core.gate import is_author_allowed
from adolens_core.prompt import DEFAULT_PROMPT, PROMPT_OUTPUT_FILE
from adolens_core.task import TaskResult, run_task


def _settings(**overrides):
    settings = {
        "github_pat": "gh-pat",
        "azure_devops_pat": "ado-pat",
        "organization": "contoso",
        "project": "Web",
        "repository": "web-app",
        "pull_request_id": "42",
        "timeout": 15,
        "model": None,
        "prompt": None,
        "prompt_file": None,
        "authors": None,
    }
    settings.update(overrides)
    return settings


def _environ(tmp_path, **extra):
    env = {"SYSTEM_DEFAULTWORKINGDIRECTORY": str(tmp_path)}
    env.update(extra)
    return env


def _client():
    client = MagicMock()
    client.get_pull_request.return_value = {"pullRequestId": 42, "title": "Add retry"}
    client.list_threads.return_value = []
    client.get_latest_iteration.return_value = {"id": 3}
    client.list_iteration_commits.return_value = []
    client.get_iteration_changes.return_value = []
    return client


def _copilot_runs(runner):
    return [c for c in runner.runs() if c[1][0] == "copilot"]


# ---------------------------------------------------------------------------
# Author gate
# ---------------------------------------------------------------------------


class TestAuthorGate:
    def test_empty_list_allows_everyone(self):
        assert is_author_allowed((), None) is True

    def test_case_insensitive_match(self):
        assert is_author_allowed(("Dev@Contoso.com",), " dev@contoso.COM ") is True

    def test_absent_requester_blocked(self):
        assert is_author_allowed(("dev@contoso.com",), "other@contoso.com") is False

    def test_unknown_requester_blocked(self):
        assert is_author_allowed(("dev@contoso.com",), None) is False


# ---------------------------------------------------------------------------
# run_task
# ---------------------------------------------------------------------------


class TestRunTaskSuccess:
    def test_full_run(self, tmp_path, make_runner):
        runner = make_runner()
        client = _client()
        factory = MagicMock(return_value=client)

        outcome = run_task(_settings(), _environ(tmp_path), runner=runner, client_factory=factory, system="linux")

        assert outcome.result is TaskResult.SUCCEEDED
        factory.assert_called_once()
        assert (tmp_path / PR_DETAILS_FILE).exists()
        assert (tmp_path / ITERATION_DETAILS_FILE).exists()
        assert (tmp_path / PROMPT_OUTPUT_FILE).read_text(encoding="utf-8") == DEFAULT_PROMPT.read_text(
            encoding="utf-8"
        )

        runs = _copilot_runs(runner)
        assert len(runs) == 1
        _, args, kwargs = runs[0]
        assert args[2] == DEFAULT_PROMPT.read_text(encoding="utf-8")
        assert kwargs["timeout"] == 15 * 60
        assert kwargs["cwd"] == str(tmp_path)

    def test_context_files_written_before_review_starts(self, tmp_path, make_runner):
        seen = {}

        class RecordingRunner(make_runner):
            def run(self, args, cwd=None, env=None, timeout=None):
                seen["files"] = sorted(p.name for p in tmp_path.iterdir())
                return super().run(args, cwd=cwd, env=env, timeout=timeout)

        run_task(
            _settings(),
            _environ(tmp_path),
            runner=RecordingRunner(),
            client_factory=MagicMock(return_value=_client()),
            system="linux",
        )
        assert PR_DETAILS_FILE in seen["files"]
        assert ITERATION_DETAILS_FILE in seen["files"]
        assert PROMPT_OUTPUT_FILE in seen["files"]

    def test_installs_cli_when_missing(self, tmp_path, make_runner):
        runner = make_runner(probes={"copilot": False})
        run_task(
            _settings(), _environ(tmp_path), runner=runner, client_factory=MagicMock(return_value=_client()),
            system="linux",
        )
        assert runner.runs()[0][1][0] == "npm"
        assert len(_copilot_runs(runner)) == 1

    def test_inline_prompt_beats_prompt_file(self, tmp_path, make_runner):
        prompt_file = tmp_path / "custom.md"
        prompt_file.write_text("From the file.")
        runner = make_runner()

        run_task(
            _settings(prompt="From the input.", prompt_file=str(prompt_file)),
            _environ(tmp_path),
            runner=runner,
            client_factory=MagicMock(return_value=_client()),
            system="linux",
        )

        text = _copilot_runs(runner)[0][1][2]
        assert "From the input." in text
        assert "From the file." not in text

    def test_model_passed_to_cli(self, tmp_path, make_runner):
        runner = make_runner()
        run_task(
            _settings(model="gpt-5"),
            _environ(tmp_path),
            runner=runner,
            client_factory=MagicMock(return_value=_client()),
            system="linux",
        )
        assert _copilot_runs(runner)[0][1][-2:] == ["--model", "gpt-5"]


class TestRunTaskShortCircuits:
    def test_author_not_in_list_skips(self, tmp_path, make_runner):
        runner = make_runner()
        factory = MagicMock()

        outcome = run_task(
            _settings(authors="lead@contoso.com"),
            _environ(tmp_path, BUILD_REQUESTEDFOREMAIL="intern@contoso.com"),
            runner=runner,
            client_factory=factory,
            system="linux",
        )

        assert outcome.result is TaskResult.SKIPPED
        assert "intern@contoso.com" in outcome.message
        factory.assert_not_called()
        assert runner.runs() == []
        assert not (tmp_path / PR_DETAILS_FILE).exists()

    def test_author_in_list_proceeds(self, tmp_path, make_runner):
        runner = make_runner()
        outcome = run_task(
            _settings(authors="intern@contoso.com, lead@contoso.com"),
            _environ(tmp_path, BUILD_REQUESTEDFOREMAIL="LEAD@contoso.com"),
            runner=runner,
            client_factory=MagicMock(return_value=_client()),
            system="linux",
        )
        assert outcome.result is TaskResult.SUCCEEDED
        assert len(_copilot_runs(runner)) == 1


class TestRunTaskFailures:
    def test_preflight_failure_comes_first(self, tmp_path, make_runner):
        factory = MagicMock()
        with pytest.raises(PreflightError):
            run_task({}, _environ(tmp_path), runner=make_runner(probes={"pwsh": False}), client_factory=factory)
        factory.assert_not_called()

    @pytest.mark.parametrize("missing", ["github_pat", "organization", "project", "repository", "pull_request_id"])
    def test_missing_required_input_fails_before_network(self, tmp_path, make_runner, missing):
        runner = make_runner()
        factory = MagicMock()
        with pytest.raises(ConfigurationError):
            run_task(
                _settings(**{missing: None}), _environ(tmp_path), runner=runner, client_factory=factory,
                system="linux",
            )
        factory.assert_not_called()
        assert runner.runs() == []

    def test_double_quote_prompt_fails_before_any_tool_spawn(self, tmp_path, make_runner):
        runner = make_runner()
        factory = MagicMock()
        with pytest.raises(ValidationError):
            run_task(
                _settings(prompt='Check "this"'), _environ(tmp_path), runner=runner, client_factory=factory,
                system="linux",
            )
        factory.assert_not_called()
        assert runner.runs() == []
        # Only the preflight probes ran; the Copilot CLI was never touched.
        assert all(c[1][0] in ("pwsh", "node") for c in runner.calls)

    def test_empty_prompt_file_fails(self, tmp_path, make_runner):
        empty = tmp_path / "empty.md"
        empty.write_text("")
        with pytest.raises(ValidationError, match="empty"):
            run_task(
                _settings(prompt_file=str(empty)),
                _environ(tmp_path),
                runner=make_runner(),
                client_factory=MagicMock(),
                system="linux",
            )

    def test_not_found_aborts_before_review(self, tmp_path, make_runner):
        runner = make_runner()
        client = _client()
        client.get_pull_request.side_effect = NotFoundError("Not found: pull request 42")
        with pytest.raises(NotFoundError) as exc:
            run_task(
                _settings(), _environ(tmp_path), runner=runner, client_factory=MagicMock(return_value=client),
                system="linux",
            )
        assert not isinstance(exc.value, AuthenticationError)
        assert _copilot_runs(runner) == []

    def test_auth_error_aborts(self, tmp_path, make_runner):
        client = _client()
        client.get_pull_request.side_effect = AuthenticationError("https://dev.azure.com/contoso")
        with pytest.raises(AuthenticationError):
            run_task(
                _settings(), _environ(tmp_path), runner=make_runner(), client_factory=MagicMock(return_value=client),
                system="linux",
            )

    def test_review_timeout_fails_run(self, tmp_path, make_runner):
        runner = make_runner(run_error=ReviewTimeoutError("copilot timed out after 1 minutes", 60))
        with pytest.raises(ReviewTimeoutError):
            run_task(
                _settings(timeout=1),
                _environ(tmp_path),
                runner=runner,
                client_factory=MagicMock(return_value=_client()),
                system="linux",
            )
        assert runner.runs()[0][2]["timeout"] == 60


class TestRunTaskLog:
    def test_custom_prompt_printed_between_markers(self, tmp_path, make_runner, capsys):
        run_task(
            _settings(prompt="Focus on retries."),
            _environ(tmp_path),
            runner=make_runner(),
            client_factory=MagicMock(return_value=_client()),
            system="linux",
        )

        out = capsys.readouterr().out
        start = out.index("START PROMPT")
        end = out.index("END PROMPT")
        assert start < out.index("Focus on retries.") < end

    def test_iteration_failure_reported_under_its_own_fetch(self, tmp_path, make_runner, capsys):
        client = _client()
        client.get_latest_iteration.side_effect = NotFoundError("Pull request 42 has no iterations.")

        with pytest.raises(NotFoundError):
            run_task(
                _settings(), _environ(tmp_path), runner=make_runner(), client_factory=MagicMock(return_value=client),
                system="linux",
            )

        out = capsys.readouterr().out
        assert "PR details saved to" in out
        assert out.rstrip().endswith("Fetching pull request changes...")
        assert "Iteration details saved to" not in out

    def test_missing_working_directory_raises_os_error(self, tmp_path, make_runner):
        runner = make_runner()
        with pytest.raises(OSError):
            run_task(
                _settings(),
                _environ(tmp_path / "missing"),
                runner=runner,
                client_factory=MagicMock(return_value=_client()),
                system="linux",
            )
        assert _copilot_runs(runner) == []
