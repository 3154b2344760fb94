import logging
import threading

from fakeout.errors import (
    GameAlreadyStarted,
    NotAuthorized,
    NotEnoughPlayers,
    RoundInvariantError,
    SessionAborted,
)
from fakeout.models import LOBBY
from .rounds import RoundOrchestrator, RoundTimings, record_answer, record_vote
from .scoring import pick_winner

log = logging.getLogger(__name__)


def _spawn_thread(target, *args):
    worker = threading.Thread(target=target, args=args, daemon=True)
    worker.start()
    return worker


class SessionOrchestrator:
    """Sequences every question of a session and announces the winner.

    Each started session runs in its own background task; the socket and
    HTTP handlers only feed answers and votes in through ``record_answer``
    and ``record_vote``.
    """

    def __init__(self, store, questions, notifier, rounds: RoundOrchestrator,
                 tier_count=3, questions_per_tier=3, min_players=1, answer_max_len=None,
                 spawn=_spawn_thread):
        self.store = store
        self.questions = questions
        self.notifier = notifier
        self.rounds = rounds
        self.tier_count = tier_count
        self.questions_per_tier = questions_per_tier
        self.min_players = max(1, min_players)
        self.answer_max_len = answer_max_len
        self._spawn = spawn

    @classmethod
    def from_config(cls, config, store, questions, notifier, spawn=_spawn_thread, **kwargs):
        rounds = RoundOrchestrator(notifier, RoundTimings.from_config(config), **kwargs)
        return cls(
            store, questions, notifier, rounds,
            tier_count=int(config.get('TIER_COUNT', 3)),
            questions_per_tier=int(config.get('QUESTIONS_PER_TIER', 3)),
            min_players=int(config.get('MIN_PLAYERS', 1)),
            answer_max_len=int(config.get('ANSWER_MAX_LEN', 120)),
            spawn=spawn,
        )

    @property
    def total_questions(self) -> int:
        return min(self.tier_count, len(self.questions)) * self.questions_per_tier

    def start(self, code, player_id):
        """Validate a start request and launch the session in the background.

        Raises GameNotFound, NotAuthorized, GameAlreadyStarted or
        NotEnoughPlayers without touching the session.
        """
        session = self.store.require(code)
        with session.lock:
            if session.status != LOBBY:
                raise GameAlreadyStarted()
            connected = len(session.connected_players())
            if connected < self.min_players:
                raise NotEnoughPlayers(f'At least {self.min_players} players are required to start.')
            if session.host_id is None or player_id != session.host_id:
                raise NotAuthorized()
            self.store.mark_in_progress(session)
        log.info(f"[game-start] game={session.code} players={connected} questions={self.total_questions}")
        self.notifier.broadcast(session.code, 'gameStarted', {
            'code': session.code,
            'players': session.roster_dict(),
            'totalQuestions': self.total_questions,
        })
        self._spawn(self.run_session, session)
        return session

    def run_session(self, session):
        try:
            tiers = min(self.tier_count, len(self.questions))
            for tier in range(1, tiers + 1):
                for number in range(1, self.questions_per_tier + 1):
                    pair = self.questions.pick(tier)
                    self.rounds.run_question(session, pair, round_number=tier, question_number=number)
            winner = pick_winner(session.players)
            log.info(f"[game-over] game={session.code} winner={winner.id if winner else None}")
            self.notifier.broadcast(session.code, 'gameOver', {
                'players': session.roster_dict(),
                'winner': winner.to_dict(session.host_id) if winner else None,
            })
        except SessionAborted as exc:
            log.info(f"[session-abort] game={session.code} {exc}")
        except RoundInvariantError:
            log.exception(f"[session-abort] game={session.code} round invariant broken")
        except Exception:
            log.exception(f"[session-abort] game={session.code} unexpected error")
        finally:
            self.store.finish(session)

    def record_answer(self, code, player_id, text) -> bool:
        return record_answer(self.store.get(code), player_id, text, max_len=self.answer_max_len)

    def record_vote(self, code, voter_id, target_id) -> bool:
        return record_vote(self.store.get(code), voter_id, target_id)
