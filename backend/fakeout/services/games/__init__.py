"""Game domain services: question bank, round state, scoring and sequencing.

This package holds the round and session orchestration that socket
handlers and HTTP routes call into, keeping transport concerns separated
from core game mechanics. Outbound messages go through a ``Notifier``.
"""

from .questions import QuestionBank, QuestionPair
from .rounds import RoundOrchestrator, RoundOutcome, RoundTimings, record_answer, record_vote
from .scheduler import SessionOrchestrator
from .state import Phase, PhaseLatch, RoundContext

__all__ = [
    'QuestionBank',
    'QuestionPair',
    'RoundOrchestrator',
    'RoundOutcome',
    'RoundTimings',
    'SessionOrchestrator',
    'Phase',
    'PhaseLatch',
    'RoundContext',
    'record_answer',
    'record_vote',
]
