import threading

import pytest

from aura.errors import DecodeError, InvalidFeedbackValue
from aura.knowledge.store import FeedbackSign, KnowledgeStore, feedback_weight


def test_positive_feedback_progression_crosses_threshold():
    store = KnowledgeStore()
    scores = [store.apply_feedback("a", FeedbackSign.POSITIVE) for _ in range(7)]
    assert scores == [1, 2, 3, 4, 5, 6, 8]


def test_negative_feedback_mirrors_positive():
    store = KnowledgeStore()
    scores = [store.apply_feedback("a", -1) for _ in range(8)]
    assert scores == [-1, -2, -3, -4, -5, -6, -8, -10]


def test_weight_uses_strict_threshold():
    assert feedback_weight(5) == 1
    assert feedback_weight(-5) == 1
    assert feedback_weight(6) == 2
    assert feedback_weight(-6) == 2
    assert feedback_weight(0) == 1


def test_updates_are_order_dependent():
    store = KnowledgeStore()
    store.restore({"up_first": 5, "down_first": 5})
    store.apply_feedback("up_first", 1)
    store.apply_feedback("up_first", -1)
    store.apply_feedback("down_first", -1)
    store.apply_feedback("down_first", 1)
    # 5 -> 6 -> 4 versus 5 -> 4 -> 5
    assert store.score("up_first") == 4
    assert store.score("down_first") == 5


def test_actions_are_case_sensitive_and_independent():
    store = KnowledgeStore()
    store.apply_feedback("Open", 1)
    store.apply_feedback("open", -1)
    assert dict(store.snapshot()) == {"Open": 1, "open": -1}


def test_empty_action_is_accepted():
    store = KnowledgeStore()
    assert store.apply_feedback("", 1) == 1
    assert store.snapshot() == {"": 1}


@pytest.mark.parametrize("value", [0, 2, -3, True, "1", None])
def test_invalid_sign_is_noop(value):
    store = KnowledgeStore()
    store.apply_feedback("a", 1)
    assert store.apply_feedback("a", value) == 1
    assert store.apply_feedback("unseen", value) == 0
    assert dict(store.snapshot()) == {"a": 1}


def test_sign_parse_rejects_other_values():
    assert FeedbackSign.parse(1) is FeedbackSign.POSITIVE
    assert FeedbackSign.parse(-1) is FeedbackSign.NEGATIVE
    with pytest.raises(InvalidFeedbackValue):
        FeedbackSign.parse(0)
    with pytest.raises(InvalidFeedbackValue):
        FeedbackSign.parse(1.0)


def test_empty_snapshot():
    assert dict(KnowledgeStore().snapshot()) == {}


def test_snapshot_is_immutable_copy():
    store = KnowledgeStore()
    store.apply_feedback("a", 1)
    snap = store.snapshot()
    with pytest.raises(TypeError):
        snap["a"] = 10
    store.apply_feedback("a", 1)
    assert snap["a"] == 1
    assert store.score("a") == 2


def test_restore_round_trip():
    store = KnowledgeStore()
    for action, sign in [("a", 1), ("b", -1), ("a", 1), ("c", 1)]:
        store.apply_feedback(action, sign)
    before = dict(store.snapshot())
    store.restore(store.snapshot())
    assert dict(store.snapshot()) == before
    assert len(store) == 3


@pytest.mark.parametrize(
    "data",
    [
        ["a", 1],
        {"a": "1"},
        {"a": 1.5},
        {"a": True},
        {1: 1},
    ],
)
def test_restore_rejects_invalid_data_without_mutating(data):
    store = KnowledgeStore()
    store.apply_feedback("kept", 1)
    with pytest.raises(DecodeError):
        store.restore(data)
    assert dict(store.snapshot()) == {"kept": 1}


def test_concurrent_feedback_loses_no_updates():
    store = KnowledgeStore()
    workers, per_worker = 8, 250
    barrier = threading.Barrier(workers)

    def hammer():
        barrier.wait()
        for _ in range(per_worker):
            store.apply_feedback("shared", 1)

    threads = [threading.Thread(target=hammer) for _ in range(workers)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    sequential = KnowledgeStore()
    for _ in range(workers * per_worker):
        expected = sequential.apply_feedback("shared", 1)
    assert store.score("shared") == expected


def test_snapshot_never_observes_torn_state():
    store = KnowledgeStore()
    total = 400
    valid = {0}
    shadow = KnowledgeStore()
    for _ in range(total):
        valid.add(shadow.apply_feedback("a", 1))

    observed = []
    done = threading.Event()

    def writer():
        for _ in range(total):
            store.apply_feedback("a", 1)
        done.set()

    def reader():
        while not done.is_set():
            observed.append(store.snapshot().get("a", 0))

    threads = [threading.Thread(target=writer), threading.Thread(target=reader)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert observed
    assert set(observed) <= valid
    assert observed == sorted(observed)
