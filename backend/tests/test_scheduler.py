import pytest

from fakeout.errors import GameAlreadyStarted, GameNotFound, NotAuthorized, NotEnoughPlayers
from fakeout.models import FINISHED, IN_PROGRESS, LOBBY
from fakeout.services.games import QuestionBank, RoundOrchestrator, RoundTimings, SessionOrchestrator
from fakeout.services.games.state import Phase
from fakeout.store import SessionStore

from conftest import PickPlayer, wait_until


def build_engine(notifier, faker='cara', tiers=1, per_tier=2, answer_sec=5.0, spawn=None):
    store = SessionStore()
    bank = QuestionBank([[('Name a pet.', 'Name a zoo animal.')]] * tiers)
    timings = RoundTimings(answer_sec=answer_sec, deliberation_sec=answer_sec, results_pause_sec=0)
    rounds = RoundOrchestrator(notifier, timings, rng=PickPlayer(faker), sleep=lambda _: None)
    kwargs = {'spawn': spawn} if spawn else {}
    return SessionOrchestrator(store, bank, notifier, rounds, tier_count=tiers,
                               questions_per_tier=per_tier, **kwargs)


def lobby(engine, names=('Alice', 'Bob', 'Cara')):
    session = engine.store.create()
    for name in names:
        engine.store.join(session.code, name.lower(), name, sid=f'sid-{name}')
    return session


def test_start_rejects_unknown_game(notifier):
    engine = build_engine(notifier)
    with pytest.raises(GameNotFound):
        engine.start('NOPE', 'alice')


def test_only_the_host_may_start(notifier):
    engine = build_engine(notifier, spawn=lambda *a: None)
    session = lobby(engine)
    with pytest.raises(NotAuthorized):
        engine.start(session.code, 'bob')
    assert session.status == LOBBY
    assert notifier.events == []


def test_start_needs_players(notifier):
    engine = build_engine(notifier, spawn=lambda *a: None)
    session = engine.store.create()
    with pytest.raises(NotEnoughPlayers):
        engine.start(session.code, 'alice')
    assert session.status == LOBBY


def test_start_twice_is_rejected(notifier):
    spawned = []
    engine = build_engine(notifier, spawn=lambda target, *args: spawned.append(args))
    session = lobby(engine)
    engine.start(session.code, 'alice')
    assert session.status == IN_PROGRESS
    assert spawned == [(session,)]
    assert notifier.named('gameStarted')[0]['payload']['totalQuestions'] == 2
    with pytest.raises(GameAlreadyStarted):
        engine.start(session.code, 'alice')
    assert len(spawned) == 1


def test_finished_game_cannot_restart(notifier):
    engine = build_engine(notifier, per_tier=1, answer_sec=0.02)
    session = lobby(engine)
    engine.start(session.code, 'alice')
    notifier.wait_for('gameOver')
    wait_until(lambda: session.status == FINISHED)
    with pytest.raises(GameAlreadyStarted):
        engine.start(session.code, 'alice')


def test_session_runs_every_configured_question(notifier):
    engine = build_engine(notifier, tiers=3, per_tier=2, answer_sec=0.02)
    session = lobby(engine)
    engine.start(session.code, 'alice')
    notifier.wait_for('gameOver', timeout=10)

    infos = [e['payload'] for e in notifier.named('roundStartedInfo')]
    assert [(i['round'], i['questionNumber']) for i in infos] == [
        (1, 1), (1, 2), (2, 1), (2, 2), (3, 1), (3, 2),
    ]
    # Nobody voted, so the faker collected two points every question
    assert session.player('cara').score == 12
    assert notifier.named('gameOver')[0]['payload']['winner']['id'] == 'cara'


def test_end_to_end_two_voters_catch_the_faker(notifier):
    engine = build_engine(notifier, faker='cara', per_tier=2)
    session = lobby(engine)
    assert session.host_id == 'alice'
    engine.start(session.code, 'alice')

    for question in (1, 2):
        notifier.wait_for('roundQuestion', count=3 * question)
        for pid, text in (('alice', 'cat'), ('bob', 'dog'), ('cara', 'lion')):
            assert engine.record_answer(session.code, pid, text)
        # Everyone answered, so the reveal comes well before the 5s deadline
        notifier.wait_for('revealAnswers', count=question, timeout=2)
        wait_until(lambda: session.current_round is not None
                   and session.current_round.phase is Phase.AWAITING_VOTES)
        assert engine.record_vote(session.code, 'alice', 'cara')
        assert engine.record_vote(session.code, 'bob', 'cara')
        assert engine.record_vote(session.code, 'cara', 'bob')
        notifier.wait_for('voteResults', count=question, timeout=2)

    over = notifier.wait_for('gameOver')[0]['payload']
    points = {p['id']: p['points'] for p in over['players']}
    assert points == {'alice': 2, 'bob': 2, 'cara': 0}
    assert over['winner']['id'] == 'alice'
    wait_until(lambda: session.status == FINISHED)
    assert engine.record_answer(session.code, 'alice', 'too late') is False


def test_session_stops_when_everyone_leaves(notifier):
    engine = build_engine(notifier, per_tier=3)
    session = lobby(engine)
    engine.start(session.code, 'alice')
    notifier.wait_for('roundQuestion', count=3)
    for pid in ('alice', 'bob', 'cara'):
        engine.store.disconnect(session.code, pid)

    wait_until(lambda: session.status == FINISHED)
    assert notifier.named('gameOver') == []
    assert notifier.named('revealAnswers') == []
    assert engine.store.get(session.code) is None


def test_unknown_session_input_is_ignored(notifier):
    engine = build_engine(notifier)
    assert engine.record_answer('NOPE', 'alice', 'cat') is False
    assert engine.record_vote('NOPE', 'alice', 'bob') is False
    session = lobby(engine)
    assert engine.record_answer(session.code, 'alice', 'cat') is False


def test_broken_question_bank_is_logged_and_the_session_finishes(notifier, caplog):
    store = SessionStore()
    rounds = RoundOrchestrator(notifier, RoundTimings(results_pause_sec=0), sleep=lambda _: None)
    engine = SessionOrchestrator(store, QuestionBank([[]]), notifier, rounds,
                                 tier_count=1, questions_per_tier=1, spawn=lambda *a: None)
    session = lobby(engine)
    engine.start(session.code, 'alice')

    with caplog.at_level('ERROR', logger='fakeout.services.games.scheduler'):
        engine.run_session(session)

    assert session.status == FINISHED
    assert notifier.named('roundQuestion') == []
    assert notifier.named('gameOver') == []
    assert any('[session-abort]' in r.getMessage() and r.exc_info for r in caplog.records)
