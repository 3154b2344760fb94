from collections import Counter
from typing import Dict, Iterable, List, Optional

CATCH_POINTS = 1
EVADE_POINTS = 2


def _normalize(text: str) -> str:
    """Comparison key for majority counting.

    Answers that differ only in case or spacing count as the same answer;
    players typing "Cat" and "cat " agreed.
    """
    return ' '.join(text.split()).casefold()


def majority_answer(answers: Dict[str, str], roster_ids: List[str]) -> Optional[str]:
    """Most common non-empty answer, compared case- and whitespace-insensitively.

    Ties go to whichever answer shows up first in roster order, and the
    spelling returned is that first player's. A one-player round has no
    majority.
    """
    if len(roster_ids) < 2:
        return None
    counts = Counter()
    first_spelling = {}
    for pid in roster_ids:
        text = (answers.get(pid) or '').strip()
        if not text:
            continue
        key = _normalize(text)
        counts[key] += 1
        first_spelling.setdefault(key, text)
    if not counts:
        return None
    best = max(counts.values())
    for key in first_spelling:
        if counts[key] == best:
            return first_spelling[key]
    return None


def tally_votes(votes: Dict[str, str], roster_ids: List[str]) -> Dict[str, int]:
    """Votes received per target, ordered by roster position."""
    counts = Counter(votes.values())
    return {pid: counts[pid] for pid in roster_ids if counts[pid] > 0}


def top_candidate(tally: Dict[str, int]) -> Optional[str]:
    if not tally:
        return None
    best = max(tally.values())
    for pid, count in tally.items():
        if count == best:
            return pid
    return None


def award_points(votes: Dict[str, str], top_id: Optional[str], divergent_id: str) -> Dict[str, int]:
    """Points earned this round, keyed by player id.

    Caught faker: +1 to each voter who picked them. Otherwise the faker
    gets +2 and nobody else scores.
    """
    if top_id is not None and top_id == divergent_id:
        return {voter: CATCH_POINTS for voter, target in votes.items() if target == top_id}
    return {divergent_id: EVADE_POINTS}


def apply_awards(session, awards: Dict[str, int]) -> None:
    with session.lock:
        for pid, points in awards.items():
            player = session.player(pid)
            if player is not None:
                player.score += points


def pick_winner(players: Iterable):
    """Highest score; ties go to the earliest joiner."""
    winner = None
    for p in players:
        if winner is None or p.score > winner.score:
            winner = p
    return winner
