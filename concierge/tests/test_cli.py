"""Tests for the console chat."""

import asyncio
import os
import signal
import sys
from unittest.mock import patch

import pytest

from concierge.cli import chat
from concierge.config import Settings
from concierge.exceptions import ConfigurationError
from concierge.models import AssistantReply, RunState


def chat_settings(**overrides) -> Settings:
    values = {"ticketmaster_api_key": "tm", "openai_api_key": "oa", "poll_interval": 0.01}
    values.update(overrides)
    return Settings(_env_file=None, **values)


class TestInputHelpers:
    """Tests for input handling."""

    @pytest.mark.parametrize("text", ["", "   ", "exit", "EXIT", "quit", " Quit "])
    def test_exit_requests(self, text):
        assert chat.is_exit_request(text)

    @pytest.mark.parametrize("text", ["concerts in Munich", "exit plan for tonight"])
    def test_not_exit_requests(self, text):
        assert not chat.is_exit_request(text)

    def test_eof_reads_as_empty(self):
        with patch("builtins.input", side_effect=EOFError):
            assert chat.read_user_input() == ""

    def test_ctrl_c_reads_as_empty(self):
        with patch("builtins.input", side_effect=KeyboardInterrupt):
            assert chat.read_user_input() == ""


class TestRunChat:
    """Tests for the chat loop against a scripted agent service."""

    def test_one_turn_then_exit(self, make_orchestrator, capsys):
        orchestrator = make_orchestrator()

        with (
            patch.object(chat, "AssistantsOrchestrator", return_value=orchestrator),
            patch.object(chat, "read_user_input", side_effect=["find concerts in Munich", "exit"]),
        ):
            code = chat.run_chat(chat_settings())

        out = capsys.readouterr().out
        assert code == 0
        assert "Created agent with ID: asst_new" in out
        assert "Started conversation thread: thread_1" in out
        assert "Assistant: Here you go" in out
        assert "Goodbye!" in out
        assert "Conversation thread deleted." in out
        assert orchestrator.messages == [("thread_1", "find concerts in Munich")]
        assert orchestrator.deleted == ["thread_1"]
        assert orchestrator.closed

    def test_existing_agent(self, make_orchestrator, capsys):
        orchestrator = make_orchestrator()

        with (
            patch.object(chat, "AssistantsOrchestrator", return_value=orchestrator),
            patch.object(chat, "read_user_input", side_effect=[""]),
        ):
            chat.run_chat(chat_settings(), agent_id="asst_saved")

        out = capsys.readouterr().out
        assert "Using existing agent: asst_saved" in out
        assert orchestrator.agents_created == []

    def test_failed_run_keeps_chatting(self, make_orchestrator, capsys):
        """A failed turn is reported and the loop continues."""
        orchestrator = make_orchestrator(states=[RunState.FAILED], last_error="Rate limit exceeded")

        with (
            patch.object(chat, "AssistantsOrchestrator", return_value=orchestrator),
            patch.object(chat, "read_user_input", side_effect=["hello", "again", "quit"]),
        ):
            code = chat.run_chat(chat_settings())

        out = capsys.readouterr().out
        assert code == 0
        assert out.count("Run failed with status: failed") == 2
        assert "Error: Rate limit exceeded" in out
        assert "Goodbye!" in out

    def test_saves_generated_files(self, make_orchestrator, capsys, tmp_path):
        orchestrator = make_orchestrator(
            reply=AssistantReply(text="Here is your chart", file_ids=["file_png"]),
            files={"file_png": b"\x89PNG"},
        )

        with (
            patch.object(chat, "AssistantsOrchestrator", return_value=orchestrator),
            patch.object(chat, "read_user_input", side_effect=["chart please", "exit"]),
        ):
            chat.run_chat(chat_settings(), download_dir=str(tmp_path))

        out = capsys.readouterr().out
        assert f"Saved file: {tmp_path / 'file_png'}" in out
        assert (tmp_path / "file_png").read_bytes() == b"\x89PNG"

    def test_setup_failure_exits_nonzero(self, make_orchestrator, capsys):
        orchestrator = make_orchestrator()

        async def broken_create_session():
            raise ConfigurationError("agent service unavailable")

        orchestrator.create_session = broken_create_session

        with patch.object(chat, "AssistantsOrchestrator", return_value=orchestrator):
            code = chat.run_chat(chat_settings())

        assert code == 1
        assert "agent service unavailable" in capsys.readouterr().err
        assert orchestrator.closed

    def test_clients_built_from_given_settings(self, make_orchestrator):
        """Keys, endpoints and timeouts come from the settings passed in."""
        orchestrator = make_orchestrator()
        settings = chat_settings(
            ticketmaster_api_key="tm-given",
            ticketmaster_base_url="http://localhost:9000/",
            http_timeout=4.0,
        )

        with (
            patch.object(chat, "AssistantsOrchestrator", return_value=orchestrator) as build,
            patch.object(
                chat, "register_search_events_tool", wraps=chat.register_search_events_tool
            ) as register,
            patch.object(chat, "read_user_input", side_effect=["exit"]),
        ):
            chat.run_chat(settings)

        assert build.call_args.kwargs["settings"] is settings
        ticketmaster = register.call_args.args[1]
        assert ticketmaster.api_key == "tm-given"
        assert ticketmaster.base_url == "http://localhost:9000/"
        assert ticketmaster.timeout == 4.0


class TestRunChatInterrupts:
    """Ctrl-C handling in the real event loop."""

    @pytest.fixture
    def orchestrator(self, make_orchestrator):
        """Scripted service whose thread deletion suspends like a network call."""
        orchestrator = make_orchestrator()
        delete_session = orchestrator.delete_session

        async def slow_delete_session(session_id):
            await asyncio.sleep(0.01)
            await delete_session(session_id)

        orchestrator.delete_session = slow_delete_session
        return orchestrator

    def test_ctrl_c_at_prompt_deletes_thread(self, orchestrator, capsys):
        """The first Ctrl-C at the prompt ends the chat and cleans up."""
        prompts = []

        def press_ctrl_c(prompt=""):
            prompts.append(prompt)
            signal.raise_signal(signal.SIGINT)
            return "never returned"

        with (
            patch.object(chat, "AssistantsOrchestrator", return_value=orchestrator),
            patch("builtins.input", side_effect=press_ctrl_c),
        ):
            code = chat.run_chat(chat_settings())

        out = capsys.readouterr().out
        assert code == 0
        assert prompts == ["You: "]
        assert "Goodbye!" in out
        assert "Conversation thread deleted." in out
        assert orchestrator.deleted == ["thread_1"]
        assert orchestrator.closed

    def test_ctrl_c_during_turn_cancels_only_that_turn(self, orchestrator, capsys):
        post_user_message = orchestrator.post_user_message

        async def interrupted_post(session_id, text):
            if text == "find concerts":
                signal.raise_signal(signal.SIGINT)
                await asyncio.sleep(5)
            await post_user_message(session_id, text)

        orchestrator.post_user_message = interrupted_post

        with (
            patch.object(chat, "AssistantsOrchestrator", return_value=orchestrator),
            patch.object(chat, "read_user_input", side_effect=["find concerts", "try again", "exit"]),
        ):
            code = chat.run_chat(chat_settings())

        out = capsys.readouterr().out
        assert code == 0
        assert "Turn interrupted." in out
        assert "Assistant: Here you go" in out
        assert orchestrator.messages == [("thread_1", "try again")]
        assert orchestrator.deleted == ["thread_1"]
        assert orchestrator.closed


class TestMain:
    """Tests for the CLI entrypoint."""

    def test_missing_credentials_exit_1(self, capsys):
        os.environ["TICKETMASTER_API_KEY"] = ""
        os.environ["OPENAI_API_KEY"] = ""

        with (
            patch.object(chat, "load_dotenv"),
            patch.object(sys, "argv", ["concierge"]),
            pytest.raises(SystemExit) as exc_info,
        ):
            chat.main()

        assert exc_info.value.code == 1
        err = capsys.readouterr().err
        assert "TICKETMASTER_API_KEY" in err
        assert "OPENAI_API_KEY" in err

    def test_runs_chat_with_cli_options(self):
        os.environ["TICKETMASTER_API_KEY"] = "tm"
        os.environ["OPENAI_API_KEY"] = "oa"

        def fake_run_chat(settings, agent_id=None, download_dir=None):
            assert settings.log_level == "DEBUG"
            assert agent_id == "asst_cli"
            assert download_dir == "out"
            return 0

        with (
            patch.object(chat, "load_dotenv"),
            patch.object(chat, "configure_logging"),
            patch.object(chat, "run_chat", side_effect=fake_run_chat),
            patch.object(
                sys,
                "argv",
                ["concierge", "--agent-id", "asst_cli", "--download-dir", "out", "--log-level", "DEBUG"],
            ),
            pytest.raises(SystemExit) as exc_info,
        ):
            chat.main()

        assert exc_info.value.code == 0
