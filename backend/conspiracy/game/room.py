from __future__ import annotations

import logging
import random
import uuid
from threading import RLock
from typing import Any, Callable

from ..config import Config
from .models import Phase, Player
from .prompts import DEFAULT_PROMPTS, pick_prompt
from .timer import PhaseTimer, Scheduler


logger = logging.getLogger(__name__)

Emit = Callable[..., Any]

VOTE_VOIDED_MESSAGE = "The player you voted for left the game. Please vote again."


class Room:
    """One game session.

    Every public method takes the room lock, and so does the phase timer,
    so mutations are serialized per room. Methods report rejected input
    through their return value and never raise for it.
    """

    def __init__(
        self,
        code: str,
        scheduler: Scheduler,
        emit: Emit,
        prompts: list[str] | None = None,
        max_rounds: int | None = None,
        round_duration_sec: int | None = None,
        max_name_length: int | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self._code = code
        self._scheduler = scheduler
        self._emit = emit
        self._rng = rng or random.Random()
        self.lock = RLock()
        self._timer: PhaseTimer | None = None
        self.closed = False
        # Connection that created the room; it is not a player.
        self.host_sid: str | None = None

        self.prompts = list(prompts or DEFAULT_PROMPTS)
        self.max_rounds = max_rounds or Config.MAX_ROUNDS
        self.round_duration_sec = round_duration_sec or Config.ROUND_DURATION_SEC
        self.max_name_length = max_name_length or Config.MAX_NAME_LENGTH

        self.phase: Phase = "lobby"
        self.current_round = 1
        self.current_prompt = ""
        self.time_left = self.round_duration_sec
        self.players: dict[str, Player] = {}
        self.submissions: dict[str, str] = {}
        self.votes: dict[str, str] = {}
        self.scores: dict[str, int] = {}

    @property
    def code(self) -> str:
        return self._code

    @property
    def timer_active(self) -> bool:
        timer = self._timer
        return timer is not None and timer.active

    # -- roster -------------------------------------------------------------

    def add_player(self, sid: str, name: str) -> tuple[Player | None, str | None]:
        """Seat a new player. Returns ``(player, None)`` or ``(None, error_code)``."""
        with self.lock:
            if self.closed:
                return None, "room_not_found"
            if len(name) > self.max_name_length:
                return None, "name_too_long"
            if not name:
                return None, "invalid_name"
            if any(p.name == name for p in self.players.values()):
                return None, "name_taken"

            player = Player(id=uuid.uuid4().hex, name=name, sid=sid)
            self.players[player.id] = player
            self.scores[player.id] = 0
            logger.info("room=%s player %r joined as %s", self._code, name, player.id)
            return player, None

    def remove_player(self, player_id: str) -> Player | None:
        with self.lock:
            player = self.players.pop(player_id, None)
            if player is None:
                return None

            self.scores.pop(player_id, None)
            self.submissions.pop(player_id, None)
            self.votes.pop(player_id, None)
            voided = [v for v, target in self.votes.items() if target == player_id]
            for voter_id in voided:
                del self.votes[voter_id]

            logger.info("room=%s player %r left", self._code, player.name)

            if not self.players:
                return player

            if self.phase == "writing":
                self.broadcast(
                    "submissionUpdate",
                    {"submitted": len(self.submissions), "total": len(self.players)},
                )
            elif self.phase == "voting":
                for voter_id in voided:
                    self._send(self.players[voter_id].sid, "error", VOTE_VOIDED_MESSAGE)
                self.broadcast(
                    "voteUpdate",
                    {"voted": len(self.votes), "total": len(self.players)},
                )

            # The leaver may have been the last one holding up the phase.
            if self.phase == "writing" and len(self.submissions) == len(self.players):
                self.end_phase()
            elif self.phase == "voting" and len(self.votes) == len(self.players):
                self.end_phase()
            return player

    def player_by_sid(self, sid: str) -> Player | None:
        with self.lock:
            for p in self.players.values():
                if p.sid == sid:
                    return p
            return None

    def player_list(self) -> list[dict]:
        with self.lock:
            return [p.public() for p in self.players.values()]

    # -- rounds -------------------------------------------------------------

    def start_game(self) -> bool:
        with self.lock:
            if self.phase != "lobby" or not self.players:
                return False
            logger.info("room=%s game started with %d players", self._code, len(self.players))
            self.start_round()
            return True

    def start_round(self) -> None:
        with self.lock:
            self.current_prompt = pick_prompt(self.prompts, self.current_prompt, rng=self._rng)
            self.submissions.clear()
            self.votes.clear()
            self.phase = "writing"
            self.time_left = self.round_duration_sec

            self._start_timer()
            logger.info("room=%s round %d started", self._code, self.current_round)
            self.broadcast(
                "roundStart",
                {
                    "round": self.current_round,
                    "prompt": self.current_prompt,
                    "timeLeft": self.time_left,
                },
            )

    def next_round(self) -> bool:
        with self.lock:
            if self.phase != "results":
                return False

            if self.current_round >= self.max_rounds:
                self.show_final_results()
            else:
                self.current_round += 1
                self.start_round()
            return True

    # -- timer --------------------------------------------------------------

    def _start_timer(self) -> None:
        self._cancel_timer()
        self._timer = PhaseTimer(self._scheduler, self._on_timer_tick).start()

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _on_timer_tick(self, timer: PhaseTimer) -> None:
        try:
            self.tick(timer)
        except Exception:
            logger.exception("room=%s timer tick failed", self._code)
            timer.cancel()

    def tick(self, timer: PhaseTimer | None = None) -> None:
        """Count the phase clock down by one second.

        Ticks from a timer other than the current one are dropped.
        """
        with self.lock:
            if self._timer is None or (timer is not None and timer is not self._timer):
                return

            self.time_left = max(0, self.time_left - 1)
            self.broadcast("timerUpdate", {"timeLeft": self.time_left})

            if self.time_left <= 0:
                self.end_phase()

    def close(self) -> None:
        with self.lock:
            self.closed = True
            self._cancel_timer()

    # -- phase transitions --------------------------------------------------

    def end_phase(self) -> None:
        with self.lock:
            self._cancel_timer()

            if self.phase == "writing":
                submissions = [
                    {"id": pid, "text": text, "playerName": self.players[pid].name}
                    for pid, text in self.submissions.items()
                    if pid in self.players
                ]
                self._rng.shuffle(submissions)

                self.phase = "voting"
                logger.info("room=%s voting on %d submissions", self._code, len(submissions))
                self.broadcast("votingPhase", {"submissions": submissions})
            elif self.phase == "voting":
                self.show_results()

    def submit_theory(self, player_id: str, text: str) -> bool:
        with self.lock:
            if self.phase != "writing" or player_id not in self.players:
                return False

            self.submissions[player_id] = text
            self.broadcast(
                "submissionUpdate",
                {"submitted": len(self.submissions), "total": len(self.players)},
            )

            if len(self.submissions) == len(self.players):
                self.end_phase()
            return True

    def vote(self, voter_id: str, voted_for_id: str) -> bool:
        with self.lock:
            if self.phase != "voting" or voter_id == voted_for_id:
                return False
            if voter_id not in self.players or voted_for_id not in self.submissions:
                return False

            self.votes[voter_id] = voted_for_id
            self.broadcast(
                "voteUpdate",
                {"voted": len(self.votes), "total": len(self.players)},
            )

            if len(self.votes) == len(self.players):
                self.end_phase()
            return True

    def tally(self) -> dict[str, int]:
        with self.lock:
            counts: dict[str, int] = {}
            for voted_for in self.votes.values():
                counts[voted_for] = counts.get(voted_for, 0) + 1
            return counts

    def show_results(self) -> None:
        with self.lock:
            self.phase = "results"

            counts = self.tally()
            for pid, received in counts.items():
                if pid in self.scores:
                    self.scores[pid] += received

            results = [
                {
                    "id": pid,
                    "text": text,
                    "playerName": self.players[pid].name,
                    "votes": counts.get(pid, 0),
                }
                for pid, text in self.submissions.items()
                if pid in self.players
            ]

            logger.info("room=%s round %d results: %s", self._code, self.current_round, counts)
            self.broadcast(
                "results",
                {"results": results, "isLastRound": self.current_round >= self.max_rounds},
            )

    def final_scores(self) -> list[dict]:
        with self.lock:
            standings = [
                {"id": pid, "name": p.name, "score": self.scores.get(pid, 0)}
                for pid, p in self.players.items()
            ]
            # sorted() is stable, so ties keep join order.
            return sorted(standings, key=lambda s: s["score"], reverse=True)

    def show_final_results(self) -> None:
        with self.lock:
            self._cancel_timer()
            self.phase = "final"
            logger.info("room=%s game over", self._code)
            self.broadcast("finalResults", {"scores": self.final_scores()})

    # -- delivery -----------------------------------------------------------

    def broadcast(self, event: str, payload: dict) -> None:
        with self.lock:
            recipients = [p.sid for p in self.players.values()]

        for sid in recipients:
            self._send(sid, event, payload)

    def _send(self, sid: str, event: str, payload: Any) -> None:
        try:
            self._emit(event, payload, to=sid)
        except Exception:
            logger.exception("room=%s failed to deliver %s to %s", self._code, event, sid)

    def public_state(self) -> dict:
        with self.lock:
            return {
                "code": self._code,
                "phase": self.phase,
                "round": self.current_round,
                "maxRounds": self.max_rounds,
                "prompt": self.current_prompt or None,
                "timeLeft": self.time_left,
                "players": [
                    {"id": pid, "name": p.name, "score": self.scores.get(pid, 0)}
                    for pid, p in self.players.items()
                ],
                "submitted": len(self.submissions),
                "voted": len(self.votes),
            }
