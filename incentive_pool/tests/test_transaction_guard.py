"""
Tests for TransactionGuard.

Verifies:
  - Body failure restores every participant
  - Commit failure (participant hook or on_commit callback) restores too
  - Same-thread re-entry rejected
"""

import os
import sys
import pytest

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..', '..'))
sys.path.insert(0, PROJECT_ROOT)

from incentive_pool.errors import ReentrantCall
from incentive_pool.governance.transaction_guard import TransactionGuard


class Counter:

    def __init__(self, fail_commit=False):
        self.value = 0
        self.commits = 0
        self.fail_commit = fail_commit

    def snapshot(self):
        return self.value

    def restore(self, value):
        self.value = value

    def commit(self):
        if self.fail_commit:
            raise OSError("disk full")
        self.commits += 1


class TestTransaction:

    def setup_method(self):
        self.counter = Counter()
        self.guard = TransactionGuard([self.counter])

    def test_success_commits(self):
        with self.guard.transaction("inc"):
            self.counter.value += 1
        assert self.counter.value == 1
        assert self.counter.commits == 1
        assert self.guard.stats() == {"committed": 1, "rolled_back": 0}

    def test_body_failure_restores(self):
        with pytest.raises(RuntimeError):
            with self.guard.transaction("inc"):
                self.counter.value += 1
                raise RuntimeError("boom")
        assert self.counter.value == 0
        assert self.counter.commits == 0
        assert self.guard.stats()["rolled_back"] == 1

    def test_reentry_rejected(self):
        with self.guard.transaction("outer"):
            with pytest.raises(ReentrantCall, match="REENTRANT_CALL"):
                with self.guard.transaction("inner"):
                    pass
        assert not self.guard.in_transaction


class TestCommitFailure:

    def test_participant_commit_failure_restores_all(self):
        first = Counter()
        failing = Counter(fail_commit=True)
        guard = TransactionGuard([first, failing])
        with pytest.raises(OSError):
            with guard.transaction("inc"):
                first.value += 1
                failing.value += 1
        assert first.value == 0
        assert failing.value == 0
        assert guard.stats() == {"committed": 0, "rolled_back": 1}

    def test_commit_hook_failure_restores_all(self):
        counter = Counter()

        def save():
            raise OSError("read-only filesystem")

        guard = TransactionGuard([counter], on_commit=[save])
        with pytest.raises(OSError):
            with guard.transaction("inc"):
                counter.value += 5
        assert counter.value == 0

    def test_hooks_run_after_participant_commits(self):
        counter = Counter()
        order = []
        guard = TransactionGuard([counter])
        guard.add_commit_hook(lambda: order.append(counter.commits))
        with guard.transaction("inc"):
            counter.value += 1
        assert order == [1]
