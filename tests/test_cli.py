"""Tests for the command line interface."""

from unittest.mock import patch

from click.testing import CliRunner

from agentflow import __version__
from agentflow.cli.commands import cli


class TestAgentsCommands:
    """Tests for the agents command group."""

    def test_version(self):
        result = CliRunner().invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.output

    def test_list(self):
        result = CliRunner().invoke(cli, ["agents", "list"])

        assert result.exit_code == 0
        for agent_id in ("summarizer", "tone-adjuster", "story-writer", "enhance"):
            assert agent_id in result.output
        assert "Multi-step" in result.output

    def test_run_streams_tokens(self, service, scripted_model):
        scripted_model.responses.append(["Hel", "lo"])

        with patch("agentflow.cli.commands._build_service", return_value=service):
            result = CliRunner().invoke(cli, ["agents", "run", "chat", "hi"])

        assert result.exit_code == 0
        assert "Hello" in result.stdout
        assert scripted_model.calls[0][-1].content == "hi"

    def test_run_reads_prompt_from_stdin(self, service, scripted_model):
        scripted_model.responses.append("ok")

        with patch("agentflow.cli.commands._build_service", return_value=service):
            result = CliRunner().invoke(cli, ["agents", "run", "chat"], input="from stdin")

        assert result.exit_code == 0
        assert scripted_model.calls[0][-1].content == "from stdin"

    def test_run_options_reach_model(self, service, scripted_model, model_factory):
        scripted_model.responses.append("ok")

        with patch("agentflow.cli.commands._build_service", return_value=service):
            result = CliRunner().invoke(
                cli,
                ["agents", "run", "chat", "hi", "--model", "gpt-4o", "--max-tokens", "20"],
            )

        assert result.exit_code == 0
        assert model_factory.requests[-1]["model_name"] == "gpt-4o"
        assert model_factory.requests[-1]["max_tokens"] == 20

    def test_run_unknown_agent(self, service):
        with patch("agentflow.cli.commands._build_service", return_value=service):
            result = CliRunner().invoke(cli, ["agents", "run", "ghost", "hi"])

        assert result.exit_code == 1
        assert "Unknown agent" in result.output

    def test_run_failure_exits_non_zero(self, service, scripted_model):
        scripted_model.responses.append(RuntimeError("401 Unauthorized"))

        with patch("agentflow.cli.commands._build_service", return_value=service):
            result = CliRunner().invoke(cli, ["agents", "run", "chat", "hi"])

        assert result.exit_code == 1
        assert "Authentication failed" in result.output

    def test_chat_keeps_history_until_exit(self, service, scripted_model):
        scripted_model.responses.extend(["first answer", "second answer"])

        with patch("agentflow.cli.commands._build_service", return_value=service):
            result = CliRunner().invoke(
                cli, ["agents", "chat"], input="hello\nagain\nexit\n"
            )

        assert result.exit_code == 0
        assert "first answer" in result.output
        assert "second answer" in result.output
        assert [m.content for m in scripted_model.calls[1]][1:] == [
            "hello",
            "first answer",
            "again",
        ]


class TestServerCommands:
    """Tests for the server command group."""

    def test_routes(self):
        result = CliRunner().invoke(cli, ["server", "routes"])

        assert result.exit_code == 0
        assert "/sessions/{session_id}" in result.output
        assert "/ws/agent" in result.output
