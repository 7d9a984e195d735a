from __future__ import annotations

from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError


# Inbound client events

CREATE_GAME = "createGame"
JOIN_GAME = "joinGame"
START_GAME = "startGame"
SUBMIT_THEORY = "submitTheory"
VOTE = "vote"
NEXT_ROUND = "nextRound"
SKIP_TIMER = "skipTimer"

# Outbound replies (the Room broadcasts the rest)

GAME_CREATED = "gameCreated"
JOINED_GAME = "joinedGame"
PLAYERS_UPDATE = "playersUpdate"
THEORY_SUBMITTED = "theorySubmitted"
VOTE_REGISTERED = "voteRegistered"
ERROR = "error"


ERROR_MESSAGES = {
    "invalid_payload": "Invalid request",
    "room_not_found": "Game not found",
    "name_too_long": "Name too long (max 20 characters)",
    "name_taken": "Name already taken in this game",
    "invalid_name": "Name is required",
    "already_joined": "Already in a game",
    "not_enough_players": "Need at least 1 player to start",
}


def error_message(code: str) -> str:
    return ERROR_MESSAGES.get(code, code)


class Message(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class RoomMessage(Message):
    code: str = Field(min_length=1)


class JoinGame(RoomMessage):
    name: str


class StartGame(RoomMessage):
    pass


class SubmitTheory(RoomMessage):
    theory: str


class Vote(RoomMessage):
    voted_for_id: str = Field(alias="votedForId", min_length=1)


class NextRound(RoomMessage):
    pass


class SkipTimer(RoomMessage):
    pass


INBOUND: dict[str, type[Message]] = {
    JOIN_GAME: JoinGame,
    START_GAME: StartGame,
    SUBMIT_THEORY: SubmitTheory,
    VOTE: Vote,
    NEXT_ROUND: NextRound,
    SKIP_TIMER: SkipTimer,
}


M = TypeVar("M", bound=Message)


def parse(model: type[M], data: Any) -> M | None:
    """Validate an inbound payload, returning ``None`` when it is malformed."""
    if not isinstance(data, dict):
        return None
    try:
        return model.model_validate(data)
    except ValidationError:
        return None
