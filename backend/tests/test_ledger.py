import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from geoquiz.services.quiz.errors import QuizStoreError
from geoquiz.services.quiz.ledger import AlreadyCommitted, Committed, ScoreLedger
from geoquiz.services.quiz.values import TeamRecord


def _race(n, fn):
    """Run fn(i) on n threads released together by a barrier."""
    barrier = threading.Barrier(n)

    def run(i):
        barrier.wait()
        return fn(i)

    with ThreadPoolExecutor(max_workers=n) as pool:
        return list(pool.map(run, range(n)))


def test_unseen_team_reads_as_zero_record():
    ledger = ScoreLedger()
    record = ledger.get('nobody')
    assert record.points == 0
    assert record.answered_question_ids == frozenset()
    assert ledger.records() == []


def test_commit_then_duplicate():
    ledger = ScoreLedger()
    assert ledger.try_commit('t1', 'q1', 10) == Committed(new_total=10)
    assert ledger.try_commit('t1', 'q1', 10) == AlreadyCommitted()
    record = ledger.get('t1')
    assert record.points == 10
    assert record.answered_question_ids == {'q1'}
    assert ledger.has_answered('t1', 'q1')
    assert not ledger.has_answered('t1', 'q2')
    assert not ledger.has_answered('t2', 'q1')


def test_negative_points_are_refused():
    with pytest.raises(ValueError):
        ScoreLedger().try_commit('t1', 'q1', -5)


def test_same_pair_under_contention_commits_once():
    ledger = ScoreLedger()
    results = _race(32, lambda i: ledger.try_commit('t1', 'q1', 10))
    assert sum(isinstance(r, Committed) for r in results) == 1
    assert sum(isinstance(r, AlreadyCommitted) for r in results) == 31
    assert ledger.get('t1').points == 10


def test_same_team_different_questions_loses_no_update():
    ledger = ScoreLedger()
    results = _race(32, lambda i: ledger.try_commit('t1', f'q{i}', 3))
    assert all(isinstance(r, Committed) for r in results)
    record = ledger.get('t1')
    assert record.points == 96
    assert len(record.answered_question_ids) == 32
    assert sorted(r.new_total for r in results) == list(range(3, 97, 3))


def test_unrelated_teams_do_not_interfere():
    ledger = ScoreLedger()
    _race(16, lambda i: ledger.try_commit(f't{i % 4}', f'q{i}', 1))
    assert {r.team_id: r.points for r in ledger.records()} == {'t0': 4, 't1': 4, 't2': 4, 't3': 4}


def test_write_through_happens_before_commit(team_store):
    ledger = ScoreLedger(store=team_store)
    assert ledger.try_commit('t1', 'q1', 10) == Committed(new_total=10)
    assert team_store.saved['t1'].points == 10
    assert team_store.saved['t1'].answered_question_ids == {'q1'}


def test_store_failure_leaves_ledger_unchanged(team_store):
    ledger = ScoreLedger(store=team_store)
    ledger.try_commit('t1', 'q1', 10)
    team_store.fail = True
    with pytest.raises(QuizStoreError):
        ledger.try_commit('t1', 'q2', 10)
    assert ledger.get('t1').points == 10
    assert not ledger.has_answered('t1', 'q2')
    team_store.fail = False
    assert ledger.try_commit('t1', 'q2', 10) == Committed(new_total=20)


def test_previously_stored_answers_are_honoured(team_store):
    team_store.saved['t1'] = TeamRecord('t1', points=40, answered_question_ids=frozenset({'q1'}))
    ledger = ScoreLedger(store=team_store)
    assert ledger.try_commit('t1', 'q1', 10) == AlreadyCommitted()
    assert ledger.try_commit('t1', 'q2', 10) == Committed(new_total=50)


def test_hydrate_does_not_clobber_live_records():
    ledger = ScoreLedger()
    ledger.try_commit('t1', 'q1', 10)
    loaded = ledger.hydrate([TeamRecord('t1', points=0), TeamRecord('t2', points=7)])
    assert loaded == 1
    assert ledger.get('t1').points == 10
    assert ledger.get('t2').points == 7


def test_records_are_snapshots():
    ledger = ScoreLedger()
    ledger.try_commit('t1', 'q1', 10)
    before = ledger.get('t1')
    ledger.try_commit('t1', 'q2', 10)
    assert before.points == 10
    assert ledger.get('t1').points == 20
