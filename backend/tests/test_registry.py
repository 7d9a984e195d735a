import re

from conspiracy.game.registry import CODE_ALPHABET, RoomRegistry, normalize_code


class ScriptedRandom:
    """Hands out characters from a fixed script, then falls back to 'Z'."""

    def __init__(self, script):
        self._script = list(script)

    def choice(self, seq):
        if self._script:
            return self._script.pop(0)
        return "Z"

    def shuffle(self, seq):
        pass


def test_codes_are_four_uppercase_alphanumerics(registry):
    for _ in range(50):
        room = registry.create()
        assert re.fullmatch(r"[A-Z0-9]{4}", room.code)
    assert len(registry) == 50


def test_code_alphabet():
    assert set(CODE_ALPHABET) == set("ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789")


def test_create_retries_on_collision(scheduler, outbox):
    registry = RoomRegistry(scheduler, outbox, rng=ScriptedRandom("ABCDABCDABCD"))
    first = registry.create()
    second = registry.create()

    assert first.code == "ABCD"
    assert second.code == "ZZZZ"
    assert len(registry) == 2


def test_find_is_case_insensitive(registry, room):
    assert registry.find(room.code.lower()) is room
    assert registry.find(f"  {room.code} ") is room
    assert room.code in registry


def test_find_handles_garbage(registry, room):
    assert registry.find("") is None
    assert registry.find(None) is None
    assert registry.find(1234) is None
    assert normalize_code(["ABCD"]) == ""


def test_remove_cancels_timer(registry, room, scheduler):
    room.add_player("s1", "Solo")
    room.start_game()
    (timer,) = scheduler.timers

    assert registry.remove(room.code)
    assert registry.find(room.code) is None
    assert timer.cancelled
    assert not registry.remove(room.code)


def test_last_player_leaving_destroys_room(registry, room, scheduler, outbox):
    player, _ = room.add_player("s1", "Solo")
    room.start_game()
    (timer,) = scheduler.timers

    assert not registry.remove_if_empty(room)

    room.remove_player(player.id)
    assert registry.remove_if_empty(room)
    assert registry.find(room.code) is None
    assert len(registry) == 0

    outbox.clear()
    room.tick(timer)
    assert outbox.sent == []


def test_find_by_sid(registry):
    one = registry.create()
    two = registry.create()
    registry.join(one, "sid-1", "A")
    registry.join(two, "sid-2", "B")

    assert registry.find_by_sid("sid-2") is two
    assert registry.find_by_sid("sid-3") is None


def test_join_seats_a_connection_once(registry):
    one = registry.create()
    two = registry.create()

    player, error = registry.join(one, "sid-1", "Nomad")
    assert error is None
    assert registry.join(two, "sid-1", "Nomad") == (None, "already_joined")
    assert two.players == {}

    # A rejected join leaves the connection free to try again.
    assert registry.join(one, "sid-2", "Nomad") == (None, "name_taken")
    assert registry.find_by_sid("sid-2") is None


def test_join_removed_room(registry):
    room = registry.create()
    registry.remove(room.code)
    assert registry.join(room, "sid-1", "Late") == (None, "room_not_found")


def test_leave_unseats_and_removes_player(registry):
    room = registry.create()
    player, _ = registry.join(room, "sid-1", "Solo")

    assert registry.leave("sid-1") == (room, player)
    assert room.players == {}
    assert registry.find_by_sid("sid-1") is None
    assert registry.leave("sid-1") == (None, None)


def test_removing_a_room_frees_its_seats(registry):
    room = registry.create()
    registry.join(room, "sid-1", "Solo")
    registry.remove(room.code)

    assert registry.find_by_sid("sid-1") is None
    other = registry.create()
    player, error = registry.join(other, "sid-1", "Solo")
    assert error is None


def test_room_options_are_forwarded(scheduler, outbox):
    registry = RoomRegistry(scheduler, outbox, max_rounds=2, round_duration_sec=30)
    room = registry.create()
    assert room.max_rounds == 2
    assert room.round_duration_sec == 30
