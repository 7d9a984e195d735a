from __future__ import annotations

from dataclasses import dataclass
from typing import Literal


Phase = Literal["lobby", "writing", "voting", "results", "final"]


@dataclass
class Player:
    id: str
    name: str
    # Socket.IO session id; only used to deliver events.
    sid: str

    def public(self) -> dict:
        return {"id": self.id, "name": self.name}
