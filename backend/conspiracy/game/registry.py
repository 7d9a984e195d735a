from __future__ import annotations

import logging
import random
import string
from threading import RLock
from typing import Any

from ..config import Config
from .models import Player
from .room import Emit, Room
from .timer import Scheduler


logger = logging.getLogger(__name__)

CODE_ALPHABET = string.ascii_uppercase + string.digits


def normalize_code(code: Any) -> str:
    if not isinstance(code, str):
        return ""
    return code.strip().upper()


class RoomRegistry:
    """Owns every live room, keyed by its code.

    Lock order is registry then room. Rooms never take the registry lock.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        emit: Emit,
        code_length: int | None = None,
        rng: random.Random | None = None,
        **room_options: Any,
    ) -> None:
        self._scheduler = scheduler
        self._emit = emit
        self._code_length = code_length or Config.ROOM_CODE_LENGTH
        self._rng = rng or random.Random()
        self._room_options = room_options
        self._lock = RLock()
        self._rooms: dict[str, Room] = {}
        # Connection sid -> code of the room that connection is seated in.
        self._seats: dict[str, str] = {}

    def _generate_code(self) -> str:
        return "".join(self._rng.choice(CODE_ALPHABET) for _ in range(self._code_length))

    def create(self, host_sid: str | None = None) -> Room:
        with self._lock:
            code = self._generate_code()
            while code in self._rooms:
                code = self._generate_code()

            room = Room(code, self._scheduler, self._emit, rng=self._rng, **self._room_options)
            room.host_sid = host_sid
            self._rooms[code] = room

        logger.info("room=%s created (%d active)", code, len(self))
        return room

    def find(self, code: Any) -> Room | None:
        with self._lock:
            return self._rooms.get(normalize_code(code))

    def remove(self, code: Any) -> bool:
        with self._lock:
            room = self._rooms.pop(normalize_code(code), None)
            if room is not None:
                self._drop_seats(room.code)
        if room is None:
            return False

        room.close()
        logger.info("room=%s removed (%d active)", room.code, len(self))
        return True

    def remove_if_empty(self, room: Room) -> bool:
        """Drop ``room`` if nobody is seated in it.

        Checked under both locks so a concurrent join either lands before
        the check or sees a closed room.
        """
        with self._lock:
            with room.lock:
                if room.players or self._rooms.get(room.code) is not room:
                    return False
                room.close()
                del self._rooms[room.code]
                self._drop_seats(room.code)

        logger.info("room=%s cleaned up, no players remaining", room.code)
        return True

    def list_rooms(self) -> list[Room]:
        with self._lock:
            return list(self._rooms.values())

    def _drop_seats(self, code: str) -> None:
        for sid in [s for s, c in self._seats.items() if c == code]:
            del self._seats[sid]

    def join(self, room: Room, sid: str, name: str) -> tuple[Player | None, str | None]:
        """Seat connection ``sid`` in ``room``; a connection sits in one room at most."""
        with self._lock:
            if sid in self._seats:
                return None, "already_joined"
            if self._rooms.get(room.code) is not room:
                return None, "room_not_found"

            player, error = room.add_player(sid, name)
            if player is not None:
                self._seats[sid] = room.code
            return player, error

    def leave(self, sid: str) -> tuple[Room | None, Player | None]:
        """Unseat ``sid`` and remove its player. Returns the room and the removed player."""
        with self._lock:
            code = self._seats.pop(sid, None)
            room = self._rooms.get(code) if code else None
        if room is None:
            return None, None

        player = room.player_by_sid(sid)
        if player is not None:
            room.remove_player(player.id)
        return room, player

    def find_by_sid(self, sid: str) -> Room | None:
        with self._lock:
            code = self._seats.get(sid)
            return self._rooms.get(code) if code else None

    def hosted_by(self, sid: str) -> list[Room]:
        return [room for room in self.list_rooms() if room.host_sid == sid]

    def __len__(self) -> int:
        with self._lock:
            return len(self._rooms)

    def __contains__(self, code: Any) -> bool:
        return self.find(code) is not None
