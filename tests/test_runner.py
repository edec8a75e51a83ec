# Area: Runner Tests
"""Tests for GameRunner and the CLI entry point."""

import pytest
from unittest.mock import Mock, patch

from doublesix_sync import cli
from doublesix_sync.runner import GameRunner
from doublesix_sync._shared.storage import InMemoryStore

from fakes import FakeGameService


@pytest.fixture(autouse=True)
def quiet_runner():
    """No log files, no signal handlers, no sleeping."""
    with patch("doublesix_sync.runner.setup_logging"), \
            patch("doublesix_sync.runner.signal"), \
            patch("doublesix_sync.runner.time"):
        yield


class TestGameRunner:
    """Tests for GameRunner class."""

    def create_config(self, **overrides):
        config = {
            "api_base_url": "http://dice.test/api",
            "username": "alice",
            "password": "pw",
            "autoplay_delay_seconds": 0.0,
            "forfeiture_window_seconds": 0.01,
            "tick_seconds": 0.01,
        }
        config.update(overrides)
        return config

    def create_runner(self, service=None, **overrides):
        if service is None:
            service = FakeGameService()
            service.add_account("alice")
            service.add_account("bob")
        return GameRunner(self.create_config(**overrides), client=service, store=InMemoryStore())

    def test_invalid_config_rejected(self):
        with pytest.raises(ValueError, match="username"):
            GameRunner({"api_base_url": "http://x", "password": "pw"}, client=FakeGameService())

    def test_sign_in_failure_exit_code(self):
        runner = self.create_runner(password="wrong")
        assert runner.run(opponent="bob") == 1
        assert runner.client.closed is True

    def test_roll_action_on_new_game(self):
        runner = self.create_runner()
        assert runner.run(opponent="bob", action="roll") == 0
        assert runner.client.count("roll") == 1

    def test_unknown_action(self):
        runner = self.create_runner()
        with pytest.raises(ValueError):
            runner.run(opponent="bob", action="dance")

    def test_waits_for_forfeiture_window_before_exit(self):
        service = FakeGameService()
        service.add_account("alice")
        service.add_account("bob")
        service.forfeit_keeps_turn = True
        service.dice = [(6, 6)]
        runner = self.create_runner(service)

        with patch("doublesix_sync._core.forfeiture.log_consistency_warning"):
            assert runner.run(opponent="bob", action="roll") == 0

        # the forced bank ran before the runner returned
        assert service.count("hold") == 1

    def test_watch_until_finished(self):
        service = FakeGameService()
        service.add_account("alice")
        service.add_account("bob")
        record = service.create_game("alice", "bob", 100, service.token_for("alice"))
        service.set_state(record.id, status="finished", winner_id=record.player1.id)
        runner = self.create_runner(service)

        assert runner.run(game_id=record.id) == 0

    def test_opens_latest_unfinished_game(self):
        service = FakeGameService()
        service.add_account("alice")
        service.add_account("bob")
        token = service.token_for("alice")
        older = service.create_game("alice", "bob", 100, token)
        newer = service.create_game("alice", "bob", 100, token)
        service.set_state(older.id, player1_score=3)
        service.set_state(newer.id, status="finished", winner_id=newer.player1.id)
        runner = self.create_runner(service)

        runner.run(action="bank")

        hold_calls = [c for c in service.calls if c[0] == "hold"]
        assert hold_calls[0][1] == older.id

    def test_no_open_games(self):
        runner = self.create_runner()
        assert runner.run() == 1
        assert "No open games" in runner.session.last_error

    def test_loop_error_does_not_stop_loop(self):
        runner = self.create_runner()
        runner._running = True
        runner.tick = Mock(side_effect=[RuntimeError("boom"), None])
        runner._should_continue = Mock(side_effect=[True, True, False])

        runner._loop(until_idle=True)

        assert runner.tick.call_count == 2

    def test_tick_runs_poller_and_scheduler(self):
        runner = self.create_runner()
        runner.session.poller = Mock()
        runner.session.scheduler = Mock()
        runner.tick()
        runner.session.poller.tick.assert_called_once()
        runner.session.scheduler.run_due.assert_called_once()


class TestCli:
    """Tests for argument parsing and main()."""

    @pytest.fixture(autouse=True)
    def clean_env(self, monkeypatch, tmp_path):
        for key in ("DOUBLESIX_API_URL", "DOUBLESIX_USERNAME", "DOUBLESIX_PASSWORD"):
            monkeypatch.delenv(key, raising=False)
        monkeypatch.chdir(tmp_path)

    def test_parse_args(self):
        args = cli.parse_args(["--autoplay", "--winning-score", "50", "--action", "roll"])
        assert args.autoplay is True
        assert args.winning_score == 50
        assert args.action == "roll"
        assert args.game_id is None

    def test_target_options_are_exclusive(self):
        with pytest.raises(SystemExit):
            cli.parse_args(["--autoplay", "--opponent", "bob"])

    def test_missing_required_config(self, capsys):
        assert cli.main([]) == 1
        assert "Missing required config" in capsys.readouterr().err

    def test_main_runs_runner(self, monkeypatch):
        monkeypatch.setenv("DOUBLESIX_API_URL", "http://dice.test/api")
        monkeypatch.setenv("DOUBLESIX_USERNAME", "alice")
        monkeypatch.setenv("DOUBLESIX_PASSWORD", "pw")
        with patch("doublesix_sync.cli.GameRunner") as mock_runner:
            mock_runner.return_value.run.return_value = 0
            assert cli.main(["--game-id", "g-7", "--action", "end"]) == 0

        mock_runner.return_value.run.assert_called_once_with(
            game_id="g-7",
            opponent=None,
            autoplay=False,
            winning_score=None,
            action="end",
        )
