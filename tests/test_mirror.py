# Area: Core Tests
"""Tests for CanonicalStateMirror and the turn guard."""

from doublesix_sync._core.mirror import CanonicalStateMirror
from doublesix_sync._core.turn_guard import owns_turn
from doublesix_sync.types import DiceOutcome, GameRecord, Player


def make_record(game_id="g-1", current="p1", status="active", updated_at=1):
    return GameRecord(
        id=game_id,
        player1=Player(id="p1", user_id="u-1", username="alice"),
        player2=Player(id="p2", user_id="u-2", username="bob"),
        current_player_id=current,
        status=status,
        updated_at=updated_at,
    )


class TestCanonicalStateMirror:
    """Tests for wholesale replacement and notifications."""

    def test_publish_replaces_record_and_notifies(self):
        mirror = CanonicalStateMirror()
        seen = []
        mirror.subscribe(seen.append)

        first, second = make_record(updated_at=1), make_record(updated_at=2)
        mirror.publish(first)
        mirror.publish(second)

        assert mirror.record is second
        assert seen == [first, second]

    def test_dice_kept_until_game_switches(self):
        mirror = CanonicalStateMirror()
        dice = DiceOutcome(die1=3, die2=4)
        mirror.publish(make_record(), dice)
        mirror.publish(make_record(updated_at=2))
        assert mirror.last_dice == dice

        mirror.publish(make_record(game_id="g-2"))
        assert mirror.last_dice is None
        assert mirror.game_id == "g-2"

    def test_clear(self):
        mirror = CanonicalStateMirror()
        mirror.publish(make_record(), DiceOutcome(die1=1, die2=1))
        mirror.clear()
        assert mirror.record is None
        assert mirror.last_dice is None
        assert mirror.game_id is None


class TestOwnsTurn:
    """Tests for owns_turn."""

    def test_primary_owner(self):
        assert owns_turn("u-1", None, make_record(current="p1")) is True

    def test_not_owner(self):
        assert owns_turn("u-1", None, make_record(current="p2")) is False

    def test_second_local_player_owns(self):
        assert owns_turn("u-1", "u-2", make_record(current="p2")) is True

    def test_finished_game_has_no_owner(self):
        assert owns_turn("u-1", "u-2", make_record(status="finished")) is False
