from __future__ import annotations

from flask import Blueprint, current_app, jsonify

bp = Blueprint("rooms", __name__)


@bp.get("/rooms/<code>")
def get_room(code: str):
    room = current_app.extensions["rooms"].find(code)
    if not room:
        return jsonify({"error": "room_not_found"}), 404
    return jsonify(room.public_state())
