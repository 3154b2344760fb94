import threading
from enum import Enum
from typing import Dict, List, Optional

COMPLETE = 'complete'
DEADLINE = 'deadline'
CANCELLED = 'cancelled'


class Phase(str, Enum):
    AWAITING_ANSWERS = 'awaiting_answers'
    REVEALED = 'revealed'
    AWAITING_VOTES = 'awaiting_votes'
    RESOLVED = 'resolved'


class PhaseLatch:
    """Single-fire latch raced by early completion and a deadline timer.

    Whichever of ``release(COMPLETE)``, the deadline timer or
    ``release(CANCELLED)`` gets here first records its reason and wakes the
    waiter; every later release is a no-op. Releasing cancels the pending
    timer so it can never fire into a later phase.
    """

    def __init__(self, name: str, lock=None):
        self.name = name
        self.reason: Optional[str] = None
        self._lock = lock if lock is not None else threading.RLock()
        self._released = threading.Event()
        self._timer: Optional[threading.Timer] = None

    @property
    def fired(self) -> bool:
        return self.reason is not None

    @property
    def pending(self) -> bool:
        """True while a deadline timer is scheduled and has neither fired nor been cancelled."""
        timer = self._timer
        return timer is not None and not timer.finished.is_set()

    def arm(self, timeout: float) -> bool:
        with self._lock:
            if self.fired or self._timer is not None:
                return False
            self._timer = threading.Timer(timeout, self.release, args=(DEADLINE,))
            self._timer.daemon = True
            self._timer.start()
            return True

    def release(self, reason: str) -> bool:
        with self._lock:
            if self.reason is not None:
                return False
            self.reason = reason
            if self._timer is not None:
                self._timer.cancel()
        self._released.set()
        return True

    def wait(self, timeout: Optional[float] = None) -> Optional[str]:
        self._released.wait(timeout)
        return self.reason


class RoundContext:
    """State for exactly one question of one session.

    The roster is frozen at construction: only those players receive a prompt,
    may answer or vote, and can be voted for. ``active_ids`` shrinks when a
    frozen player disconnects so the phase does not wait on them. Players in
    ``barred_ids`` left mid-round and may not submit until restored.
    """

    def __init__(self, session_code, round_number, question_number, roster, divergent_player_id):
        self.session_code = session_code
        self.round_number = round_number
        self.question_number = question_number
        self.roster_ids: List[str] = [p.id for p in roster]
        self.names: Dict[str, str] = {p.id: p.name for p in roster}
        if divergent_player_id not in self.names:
            raise ValueError('divergent player must be on the round roster')
        self.divergent_player_id = divergent_player_id
        self.active_ids = set(self.roster_ids)
        self.barred_ids = set()
        self.answers: Dict[str, str] = {}
        self.votes: Dict[str, str] = {}
        self.phase = Phase.AWAITING_ANSWERS
        self.resolved = False
        self.aborted = False
        self._lock = threading.RLock()
        self.answer_latch = PhaseLatch('answers', lock=self._lock)
        self.vote_latch = PhaseLatch('votes', lock=self._lock)

    def __contains__(self, player_id) -> bool:
        return player_id in self.names

    def _complete(self, submitted) -> bool:
        return bool(self.active_ids) and self.active_ids.issubset(submitted)

    # ---- Ingestion ----

    def record_answer(self, player_id: str, text: str) -> bool:
        with self._lock:
            if self.phase is not Phase.AWAITING_ANSWERS or self.answer_latch.fired:
                return False
            if player_id not in self.names or player_id in self.barred_ids:
                return False
            self.answers[player_id] = text
            if self._complete(self.answers):
                self.answer_latch.release(COMPLETE)
            return True

    def record_vote(self, voter_id: str, target_id: str) -> bool:
        with self._lock:
            if self.phase is not Phase.AWAITING_VOTES or self.vote_latch.fired:
                return False
            if voter_id not in self.names or voter_id in self.barred_ids or target_id not in self.names:
                return False
            self.votes[voter_id] = target_id
            if self._complete(self.votes):
                self.vote_latch.release(COMPLETE)
            return True

    # ---- Phase control (called by the round orchestrator) ----

    def open_answers(self, timeout: float) -> None:
        self.answer_latch.arm(timeout)

    def close_answers(self) -> Dict[str, str]:
        with self._lock:
            self.answer_latch.release(CANCELLED)
            self.phase = Phase.REVEALED
            return dict(self.answers)

    def open_votes(self, timeout: float) -> None:
        with self._lock:
            if self.aborted:
                return
            self.phase = Phase.AWAITING_VOTES
            self.vote_latch.arm(timeout)

    def close_votes(self) -> Dict[str, str]:
        """Freeze and return the votes; nothing recorded afterwards is scored."""
        with self._lock:
            self.vote_latch.release(CANCELLED)
            return dict(self.votes)

    def claim_scoring(self) -> bool:
        with self._lock:
            if self.resolved or self.aborted:
                return False
            self.resolved = True
            self.phase = Phase.RESOLVED
            return True

    # ---- Roster changes ----

    def drop_player(self, player_id: str, bar: bool = False) -> None:
        """Stop waiting on a player; with ``bar`` they may not submit again this round."""
        with self._lock:
            if bar and player_id in self.names:
                self.barred_ids.add(player_id)
            if player_id not in self.active_ids:
                return
            self.active_ids.discard(player_id)
            if not self.active_ids:
                self.abort()
            elif self.phase is Phase.AWAITING_ANSWERS and self._complete(self.answers):
                self.answer_latch.release(COMPLETE)
            elif self.phase is Phase.AWAITING_VOTES and self._complete(self.votes):
                self.vote_latch.release(COMPLETE)

    def restore_player(self, player_id: str) -> bool:
        with self._lock:
            if player_id not in self.names or self.aborted:
                return False
            self.barred_ids.discard(player_id)
            self.active_ids.add(player_id)
            return True

    def abort(self) -> None:
        with self._lock:
            self.aborted = True
            self.close()

    def close(self) -> None:
        """Cancel any timer still scheduled for this round."""
        with self._lock:
            self.answer_latch.release(CANCELLED)
            self.vote_latch.release(CANCELLED)
            self.phase = Phase.RESOLVED

    def describe(self):
        with self._lock:
            return {
                'round': self.round_number,
                'questionNumber': self.question_number,
                'phase': self.phase.value,
                'players': len(self.roster_ids),
                'answered': len(self.answers),
                'voted': len(self.votes),
            }
