import random
import string
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .errors import RoundInvariantError

LOBBY = 'lobby'
IN_PROGRESS = 'in_progress'
FINISHED = 'finished'


@dataclass
class Player:
    id: str
    name: str
    avatar: Optional[str] = None
    score: int = 0
    # Current Socket.IO sid; changes on every reconnect
    sid: Optional[str] = None
    connected: bool = True

    def to_dict(self, host_id: Optional[str] = None) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'avatar': self.avatar,
            'points': self.score,
            'connected': self.connected,
            'isHost': self.id == host_id,
        }


def generate_game_code(length=6, taken=()):
    """Generate a short upper-case game code not present in ``taken``."""
    while True:
        code = ''.join(random.choices(string.ascii_uppercase + string.digits, k=length))
        if code not in taken:
            return code


@dataclass
class Session:
    code: str
    players: List[Player] = field(default_factory=list)
    status: str = LOBBY
    # Set once, by the first join
    host_id: Optional[str] = None
    current_round: Any = None
    lock: threading.RLock = field(default_factory=threading.RLock, repr=False, compare=False)

    def player(self, player_id: str) -> Optional[Player]:
        for p in self.players:
            if p.id == player_id:
                return p
        return None

    def connected_players(self) -> List[Player]:
        with self.lock:
            return [p for p in self.players if p.connected]

    def roster_snapshot(self) -> List[Player]:
        """Players taking part in a round starting now, in join order."""
        return self.connected_players()

    @property
    def is_abandoned(self) -> bool:
        return not self.connected_players()

    def attach_round(self, ctx) -> None:
        with self.lock:
            if self.current_round is not None:
                raise RoundInvariantError(f"game {self.code} already has an active round")
            self.current_round = ctx

    def detach_round(self, ctx) -> None:
        with self.lock:
            if self.current_round is ctx:
                self.current_round = None

    def roster_dict(self) -> List[Dict[str, Any]]:
        with self.lock:
            return [p.to_dict(self.host_id) for p in self.players]

    def to_dict(self) -> Dict[str, Any]:
        ctx = self.current_round
        return {
            'game_code': self.code,
            'status': self.status,
            'host_id': self.host_id,
            'players': self.roster_dict(),
            'current_round': ctx.describe() if ctx is not None else None,
        }
