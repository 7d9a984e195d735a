from __future__ import annotations

import logging
from typing import Any

from flask import current_app, request
from flask_socketio import SocketIO, emit

from ..game.registry import RoomRegistry
from . import events
from .events import parse


logger = logging.getLogger(__name__)


def _reply_error(code: str) -> None:
    emit(events.ERROR, events.error_message(code))


def register_socketio_handlers(socketio: SocketIO, registry: RoomRegistry) -> None:
    def _broadcast_players(room) -> None:
        room.broadcast(events.PLAYERS_UPDATE, {"players": room.player_list()})

    def _resolve(event: str, data: Any):
        """Parse ``data`` and look up its room. Replies with an error on failure."""
        msg = parse(events.INBOUND[event], data)
        if msg is None:
            _reply_error("invalid_payload")
            return None, None

        room = registry.find(msg.code)
        if room is None:
            _reply_error("room_not_found")
            return msg, None
        return msg, room

    @socketio.on(events.CREATE_GAME)
    def create_game(data=None):
        room = registry.create(host_sid=request.sid)
        emit(events.GAME_CREATED, {"code": room.code})

    @socketio.on(events.JOIN_GAME)
    def join_game(data=None):
        msg, room = _resolve(events.JOIN_GAME, data)
        if room is None:
            return

        player, error = registry.join(room, request.sid, msg.name)
        if error:
            logger.info("join rejected room=%s name=%r: %s", room.code, msg.name, error)
            _reply_error(error)
            return

        emit(events.JOINED_GAME, {"code": room.code, "playerId": player.id})
        _broadcast_players(room)

    @socketio.on(events.START_GAME)
    def start_game(data=None):
        msg, room = _resolve(events.START_GAME, data)
        if room is None:
            return

        if len(room.players) < current_app.config.get("MIN_PLAYERS", 1):
            _reply_error("not_enough_players")
            return

        if not room.start_game():
            logger.info("room=%s start ignored in phase %s", room.code, room.phase)

    @socketio.on(events.SUBMIT_THEORY)
    def submit_theory(data=None):
        msg, room = _resolve(events.SUBMIT_THEORY, data)
        if room is None:
            return

        theory = msg.theory.strip()
        if not theory:
            return

        player = room.player_by_sid(request.sid)
        if player is None:
            return

        if room.submit_theory(player.id, theory):
            emit(events.THEORY_SUBMITTED)

    @socketio.on(events.VOTE)
    def vote(data=None):
        msg, room = _resolve(events.VOTE, data)
        if room is None:
            return

        player = room.player_by_sid(request.sid)
        if player is None:
            return

        if room.vote(player.id, msg.voted_for_id):
            emit(events.VOTE_REGISTERED)

    @socketio.on(events.NEXT_ROUND)
    def next_round(data=None):
        msg, room = _resolve(events.NEXT_ROUND, data)
        if room is None:
            return

        room.next_round()

    @socketio.on(events.SKIP_TIMER)
    def skip_timer(data=None):
        msg, room = _resolve(events.SKIP_TIMER, data)
        if room is None:
            return

        room.end_phase()

    @socketio.on("disconnect")
    def on_disconnect(*args):
        # Rooms this connection created but nobody ever joined.
        for hosted in registry.hosted_by(request.sid):
            registry.remove_if_empty(hosted)

        room, player = registry.leave(request.sid)
        if room is None:
            return

        if player is not None:
            _broadcast_players(room)

        registry.remove_if_empty(room)
