import logging
import threading
from typing import Dict, Optional

from .errors import GameAlreadyStarted, GameNotFound, InvalidRequest, SessionFull
from .models import FINISHED, IN_PROGRESS, LOBBY, Player, Session, generate_game_code

log = logging.getLogger(__name__)


def normalize_code(code) -> str:
    return str(code or '').strip().upper()


class SessionStore:
    """In-memory directory of sessions keyed by game code.

    Join/leave bookkeeping lives here; the round services only read the
    roster and add points.
    """

    def __init__(self, code_length=6, max_players=6, rejoin_active_round=True):
        self.code_length = code_length
        self.max_players = max_players
        self.rejoin_active_round = rejoin_active_round
        self._sessions: Dict[str, Session] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, config):
        return cls(
            code_length=int(config.get('GAME_CODE_LENGTH', 6)),
            max_players=int(config.get('MAX_PLAYERS', 6)),
            rejoin_active_round=bool(config.get('REJOIN_ACTIVE_ROUND', True)),
        )

    def __len__(self):
        return len(self._sessions)

    def create(self) -> Session:
        with self._lock:
            code = generate_game_code(self.code_length, taken=self._sessions)
            session = Session(code=code)
            self._sessions[code] = session
        log.info(f"[session-create] game={code}")
        return session

    def get(self, code) -> Optional[Session]:
        return self._sessions.get(normalize_code(code))

    def require(self, code) -> Session:
        session = self.get(code)
        if session is None:
            raise GameNotFound()
        return session

    def join(self, code, player_id, name, avatar=None, sid=None) -> Player:
        session = self.require(code)
        if not player_id or not str(name or '').strip():
            raise InvalidRequest('A player id and name are required.')
        with session.lock:
            existing = session.player(player_id)
            if existing is not None:
                self._restore(session, existing, sid or existing.sid)
                return existing
            if session.status != LOBBY:
                raise GameAlreadyStarted()
            if len(session.players) >= self.max_players:
                raise SessionFull()
            player = Player(id=player_id, name=str(name).strip(), avatar=avatar, sid=sid)
            session.players.append(player)
            if session.host_id is None:
                session.host_id = player.id
        log.info(f"[join] game={session.code} player={player_id} host={session.host_id == player_id}")
        return player

    def reconnect(self, code, player_id, sid) -> Optional[Player]:
        """Point a known player at a new connection; None if they are not on the roster."""
        session = self.get(code)
        if session is None:
            return None
        with session.lock:
            player = session.player(player_id)
            if player is None:
                return None
            self._restore(session, player, sid)
        log.info(f"[reconnect] game={session.code} player={player_id}")
        return player

    def _restore(self, session: Session, player: Player, sid) -> None:
        # caller holds session.lock
        player.sid = sid
        player.connected = True
        ctx = session.current_round
        if ctx is not None and self.rejoin_active_round:
            ctx.restore_player(player.id)

    def disconnect(self, code, player_id) -> Optional[Session]:
        session = self.get(code)
        if session is None:
            return None
        with session.lock:
            player = session.player(player_id)
            if player is None:
                return session
            if session.status == LOBBY:
                session.players.remove(player)
            else:
                player.connected = False
                player.sid = None
            ctx = session.current_round
            if ctx is not None:
                ctx.drop_player(player_id, bar=not self.rejoin_active_round)
        log.info(f"[disconnect] game={session.code} player={player_id} status={session.status}")
        if session.status == FINISHED and session.is_abandoned:
            self.discard(session.code)
        return session

    def mark_in_progress(self, session: Session) -> None:
        with session.lock:
            if session.status != LOBBY:
                raise GameAlreadyStarted()
            session.status = IN_PROGRESS

    def finish(self, session: Session) -> None:
        with session.lock:
            session.status = FINISHED
            ctx = session.current_round
            if ctx is not None:
                ctx.abort()
        if session.is_abandoned:
            self.discard(session.code)

    def discard(self, code) -> None:
        with self._lock:
            if self._sessions.pop(normalize_code(code), None) is not None:
                log.info(f"[session-discard] game={normalize_code(code)}")
