import logging
import random
import time
from dataclasses import dataclass, field
from typing import Dict, Optional

from fakeout.errors import RoundInvariantError, SessionAborted
from .questions import QuestionPair
from .scoring import apply_awards, award_points, majority_answer, tally_votes, top_candidate
from .state import RoundContext

log = logging.getLogger(__name__)


def _ms(seconds: float) -> int:
    return int(round(seconds * 1000))


@dataclass(frozen=True)
class RoundTimings:
    answer_sec: float = 45.0
    deliberation_sec: float = 30.0
    results_pause_sec: float = 6.0

    @classmethod
    def from_config(cls, config):
        return cls(
            answer_sec=float(config.get('ANSWER_DURATION_SEC', 45)),
            deliberation_sec=float(config.get('DELIBERATION_DURATION_SEC', 30)),
            results_pause_sec=float(config.get('RESULTS_PAUSE_SEC', 6)),
        )


@dataclass
class RoundOutcome:
    divergent_player_id: str
    answers: Dict[str, str]
    majority: Optional[str]
    votes: Dict[str, str]
    tally: Dict[str, int]
    top_id: Optional[str]
    awards: Dict[str, int] = field(default_factory=dict)
    answer_reason: Optional[str] = None
    vote_reason: Optional[str] = None

    @property
    def caught(self) -> bool:
        return self.top_id is not None and self.top_id == self.divergent_player_id


class RoundOrchestrator:
    """Drives one question: prompt, answers, reveal, votes, score, pause.

    Blocks the calling task at the two collection phases. Each phase ends on
    whichever comes first: every active player responding, or the deadline.
    """

    def __init__(self, notifier, timings: RoundTimings = RoundTimings(), rng=None, sleep=time.sleep):
        self.notifier = notifier
        self.timings = timings
        self._rng = rng or random.Random()
        self._sleep = sleep

    def run_question(self, session, pair: QuestionPair, round_number=1, question_number=1) -> RoundOutcome:
        roster = session.roster_snapshot()
        if not roster:
            raise SessionAborted(f"game {session.code} has no connected players")
        divergent = self._rng.choice(roster)
        ctx = RoundContext(session.code, round_number, question_number, roster, divergent.id)
        session.attach_round(ctx)
        log.info(
            f"[round-start] game={session.code} round={round_number} question={question_number} "
            f"players={len(roster)} faker={divergent.id}"
        )
        try:
            return self._drive(session, ctx, pair, roster)
        finally:
            ctx.close()
            session.detach_round(ctx)

    def _drive(self, session, ctx: RoundContext, pair: QuestionPair, roster) -> RoundOutcome:
        code = session.code
        timings = self.timings

        for player in roster:
            prompt = pair.divergent if player.id == ctx.divergent_player_id else pair.authentic
            self.notifier.send_to_player(code, player.id, 'roundQuestion', {
                'round': ctx.round_number,
                'questionNumber': ctx.question_number,
                'question': prompt,
                'timeMs': _ms(timings.answer_sec),
            })
        self.notifier.broadcast(code, 'roundStartedInfo', {
            'round': ctx.round_number,
            'questionNumber': ctx.question_number,
            'numPlayers': len(roster),
        })

        ctx.open_answers(timings.answer_sec)
        answer_reason = ctx.answer_latch.wait()
        self._check_alive(ctx, 'answers', answer_reason)
        answers = ctx.close_answers()
        majority = majority_answer(answers, ctx.roster_ids)

        self.notifier.broadcast(code, 'revealAnswers', {
            'answers': [
                {'id': pid, 'name': ctx.names[pid], 'answer': answers.get(pid)}
                for pid in ctx.roster_ids
            ],
            'majority': majority,
            'deliberationTimeMs': _ms(timings.deliberation_sec),
        })

        ctx.open_votes(timings.deliberation_sec)
        vote_reason = ctx.vote_latch.wait()
        self._check_alive(ctx, 'votes', vote_reason)
        votes = ctx.close_votes()
        tally = tally_votes(votes, ctx.roster_ids)
        top_id = top_candidate(tally)

        if not ctx.claim_scoring():
            if ctx.aborted:
                raise SessionAborted(f"game {code} emptied before scoring")
            raise RoundInvariantError(f"game {code} round {ctx.round_number} scored twice")
        awards = award_points(votes, top_id, ctx.divergent_player_id)
        apply_awards(session, awards)
        log.info(f"[score] game={code} round={ctx.round_number} question={ctx.question_number} "
                 f"top={top_id} faker={ctx.divergent_player_id} awards={awards}")

        self.notifier.broadcast(code, 'voteResults', {
            'voteCounts': tally,
            'topId': top_id,
            'fakerId': ctx.divergent_player_id,
            'players': session.roster_dict(),
        })

        self._sleep(timings.results_pause_sec)
        if ctx.aborted:
            raise SessionAborted(f"game {code} emptied during the results pause")
        return RoundOutcome(
            divergent_player_id=ctx.divergent_player_id,
            answers=answers,
            majority=majority,
            votes=votes,
            tally=tally,
            top_id=top_id,
            awards=awards,
            answer_reason=answer_reason,
            vote_reason=vote_reason,
        )

    @staticmethod
    def _check_alive(ctx: RoundContext, phase: str, reason: Optional[str]) -> None:
        log.info(f"[phase-resolved] game={ctx.session_code} round={ctx.round_number} "
                 f"question={ctx.question_number} phase={phase} reason={reason}")
        if ctx.aborted:
            raise SessionAborted(f"game {ctx.session_code} emptied during {phase}")


def record_answer(session, player_id, text, max_len=None) -> bool:
    """Apply a submitted answer to the session's active round.

    Returns False, without side effects, for anything stale: no session, no
    active round, wrong phase, or a player outside the round's roster.
    """
    ctx = session.current_round if session is not None else None
    if ctx is None or not isinstance(text, str):
        return False
    text = text.strip()
    if max_len:
        text = text[:max_len]
    return ctx.record_answer(player_id, text)


def record_vote(session, voter_id, target_id) -> bool:
    ctx = session.current_round if session is not None else None
    if ctx is None:
        return False
    return ctx.record_vote(voter_id, target_id)
