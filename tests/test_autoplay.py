# Area: Core Tests
"""Tests for the autoplay controller."""

from unittest.mock import patch

import pytest

from doublesix_sync._core.autoplay import decide_action
from doublesix_sync._core.enums import ActionKind, AutoplayState
from doublesix_sync._core.session import GameSession
from doublesix_sync._shared.storage import AUTOPLAY_CREDENTIALS_KEY

from fakes import FAST_CONFIG, drain


MOCK_WARNING = "doublesix_sync._core.forfeiture.log_consistency_warning"


def autoplay_rolls(service, identity):
    return [c for c in service.calls if c[0] == "roll" and c[2] == identity.token]


def hand_turn_to_autoplay(session, service, record, round_score=0):
    """Put the autoplay seat on turn server-side and let the mirror see it."""
    service.set_state(
        record.id,
        current_player_id=record.player2.id,
        player2_round_score=round_score,
    )
    session.dispatcher.refresh(record.id)


class TestDecideAction:
    """The fixed policy: bank at or above the threshold."""

    @pytest.mark.parametrize("round_score,expected", [
        (0, ActionKind.ROLL),
        (86, ActionKind.ROLL),
        (87, ActionKind.BANK),
        (90, ActionKind.BANK),
    ])
    def test_threshold(self, round_score, expected):
        assert decide_action(round_score) is expected

    def test_custom_threshold(self):
        assert decide_action(20, bank_threshold=20) is ActionKind.BANK


class TestAutoplayTurns:
    """Tests for the controller driving the autoplay seat."""

    @pytest.fixture
    def ai_game(self, session):
        return session.create_game(autoplay=True)

    def test_create_registers_identity(self, session, service, store, ai_game):
        identity = session.autoplay.identity
        assert identity is not None
        assert ai_game.player2.user_id == identity.account_id
        assert store.get(AUTOPLAY_CREDENTIALS_KEY)["username"] == identity.display_name

    def test_idle_while_human_on_turn(self, session, ai_game):
        assert session.autoplay.state == AutoplayState.IDLE
        assert len(session.scheduler) == 0

    def test_round_score_ninety_banks(self, session, service, ai_game):
        hand_turn_to_autoplay(session, service, ai_game, round_score=90)
        assert session.autoplay.state == AutoplayState.DECIDING

        drain(session)

        assert autoplay_rolls(service, session.autoplay.identity) == []
        assert service.mutating_calls() == ["hold"]
        record = session.mirror.record
        assert record.player2_score == 90
        assert record.current_player_id == ai_game.player1.id
        assert session.autoplay.state == AutoplayState.IDLE

    def test_rolls_until_threshold_then_banks(self, session, service, ai_game):
        """Each roll gives a new signature; the loop ends with a bank."""
        hand_turn_to_autoplay(session, service, ai_game)

        drain(session)

        # (2, 3) every roll: 85 after 17 rolls still rolls, 90 banks
        assert len(autoplay_rolls(service, session.autoplay.identity)) == 18
        assert service.count("hold") == 1
        assert session.mirror.record.player2_score == 90
        assert session.mirror.record.current_player_id == ai_game.player1.id

    def test_decision_fetches_directly(self, session, service, ai_game):
        hand_turn_to_autoplay(session, service, ai_game, round_score=90)
        identity = session.autoplay.identity
        before = len(service.calls)

        session.scheduler.run_due()

        first = service.calls[before]
        assert first == ("get_game", ai_game.id, identity.token)

    def test_turn_moved_before_decision_aborts(self, session, service, ai_game):
        hand_turn_to_autoplay(session, service, ai_game, round_score=10)
        service.set_state(ai_game.id, current_player_id=ai_game.player1.id)

        drain(session)

        assert service.mutating_calls() == []
        assert session.autoplay.state == AutoplayState.IDLE

    def test_same_signature_reacted_to_once(self, session, service, ai_game):
        hand_turn_to_autoplay(session, service, ai_game, round_score=10)
        record = session.mirror.record

        session.autoplay.on_state(record)
        session.mirror.publish(record)

        assert session.autoplay.state == AutoplayState.DECIDING
        assert len(session.scheduler) == 1

    def test_double_six_ends_autoplay_turn(self, session, service, ai_game):
        service.dice = [(6, 6)]
        hand_turn_to_autoplay(session, service, ai_game, round_score=30)

        drain(session)

        assert len(autoplay_rolls(service, session.autoplay.identity)) == 1
        assert service.count("hold") == 0
        record = session.mirror.record
        assert record.player2_round_score == 0
        assert record.current_player_id == ai_game.player1.id
        assert session.autoplay.processed_signature is None

    def test_waits_for_forfeiture_window(self, session, service, ai_game):
        """Server kept the turn after 6+6: the window's bank moves it on, not autoplay."""
        service.forfeit_keeps_turn = True
        service.dice = [(6, 6)]
        hand_turn_to_autoplay(session, service, ai_game, round_score=30)

        with patch(MOCK_WARNING):
            session.scheduler.run_due()
            assert session.forfeiture.is_active(ai_game.id)
            assert session.autoplay.state == AutoplayState.IDLE
            drain(session)

        assert len(autoplay_rolls(service, session.autoplay.identity)) == 1
        assert service.count("hold") == 1
        assert session.mirror.record.current_player_id == ai_game.player1.id

    def test_idle_while_human_double_six_window_open(self, session, service, ai_game):
        """Human 6+6 hands the turn over; autoplay waits for the window to close."""
        service.dice = [(6, 6)]

        session.roll()

        assert session.forfeiture.is_active(ai_game.id)
        assert session.mirror.record.current_player_id == ai_game.player2.id
        assert session.autoplay.state == AutoplayState.IDLE
        assert session.autoplay.processed_signature is None

        drain(session)

        # window closed without a forced bank, then autoplay played its turn
        assert len(autoplay_rolls(service, session.autoplay.identity)) == 18
        assert service.count("hold") == 1
        assert session.mirror.record.player2_score == 90

    def test_human_cannot_act_on_autoplay_turn(self, session, service, ai_game):
        hand_turn_to_autoplay(session, service, ai_game, round_score=10)
        assert session.roll() is None
        assert session.last_error == "It is not your turn"
        assert service.count("roll") == 0


class TestAutoplayRecovery:
    """A restarted client re-acquires the autoplay credential."""

    def test_login_with_persisted_credentials(self, session, service, store):
        record = session.create_game(autoplay=True)
        name = session.autoplay.identity.display_name
        session.teardown()

        restarted = GameSession(service, store=store, config=FAST_CONFIG)
        restarted.sign_in("alice", "pw")
        registers_before = service.count("register")

        restarted.load_game(record.id)

        assert restarted.autoplay.identity.display_name == name
        assert restarted.autoplay.identity.account_id == record.player2.user_id
        assert service.count("register") == registers_before

    def test_recovered_identity_plays_its_turn(self, session, service, store):
        record = session.create_game(autoplay=True)
        service.set_state(
            record.id,
            current_player_id=record.player2.id,
            player2_score=10,
            player2_round_score=95,
        )

        restarted = GameSession(service, store=store, config=FAST_CONFIG)
        restarted.sign_in("alice", "pw")
        restarted.load_game(record.id)
        drain(restarted)

        assert restarted.mirror.record.status == "finished"
        assert restarted.mirror.record.winner_id == record.player2.id

    def test_registers_when_nothing_persisted(self, service, store):
        service.add_account("StormBot", password="ai_lost")
        session = GameSession(service, store=store, config=FAST_CONFIG)
        session.sign_in("alice", "pw")
        seat = service.create_game("alice", "StormBot", 100, service.token_for("alice")).player2

        assert session.autoplay.recover(seat) is True
        assert session.autoplay.identity.display_name != "StormBot"

    def test_recovery_failure_is_not_raised(self, service, store):
        from doublesix_sync.errors import ServiceError
        service.add_account("StormBot", password="ai_lost")
        session = GameSession(service, store=store, config=FAST_CONFIG)
        session.sign_in("alice", "pw")
        seat = service.create_game("alice", "StormBot", 100, service.token_for("alice")).player2
        service.fail_next["register"] = ServiceError("down")

        assert session.autoplay.recover(seat) is False
        assert session.autoplay.identity is None

    def test_human_opponent_clears_identity(self, session):
        session.create_game(autoplay=True)
        session.create_game(opponent="bob")
        assert session.autoplay.identity is None
