"""Tests for the worker manager."""

import threading
import time

import pytest

from spire.build.worker_manager import WorkerManager, WorkerTask
from spire.errors import ManagerDisconnectedError, WorkerTaskError


@pytest.fixture
def manager():
    manager = WorkerManager()
    yield manager
    manager.disconnect()


class TestWorkerManager:
    """Test connect/run/join/disconnect."""

    def test_five_tasks_on_two_workers(self, manager):
        """All results are collected at the join barrier in submission order."""
        manager.connect(2)
        lock = threading.Lock()
        state = {"running": 0, "peak": 0}
        finished = []

        def work(index):
            with lock:
                state["running"] += 1
                state["peak"] = max(state["peak"], state["running"])
            # Later tasks finish first
            time.sleep(0.01 * (5 - index))
            with lock:
                state["running"] -= 1
                finished.append(index)
            return index * 10

        futures = [manager.run(WorkerTask(name=f"task-{i}", func=work, args=(i,))) for i in range(5)]
        outcomes = manager.join(futures)

        assert [outcome.result for outcome in outcomes] == [0, 10, 20, 30, 40]
        assert all(outcome.success for outcome in outcomes)
        assert sorted(finished) == [0, 1, 2, 3, 4]
        assert state["peak"] <= 2

    def test_inline_runs_on_caller_thread(self, manager):
        manager.connect(0)
        caller = threading.current_thread()

        future = manager.run(WorkerTask(name="inline", func=threading.current_thread))

        assert manager.is_inline
        assert future.result() is caller

    def test_inline_tasks_from_several_threads(self, manager):
        """Inline tasks dispatched concurrently keep their names at join."""
        manager.connect(0)
        futures = []
        futures_lock = threading.Lock()

        def dispatch(thread_index):
            for i in range(25):
                future = manager.run(WorkerTask(name=f"t{thread_index}-{i}", func=lambda: None))
                with futures_lock:
                    futures.append(future)

        threads = [threading.Thread(target=dispatch, args=(n,)) for n in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        names = [outcome.task.name for outcome in manager.join(futures)]
        assert len(set(names)) == 100
        assert "<unknown>" not in names

    def test_failed_task_does_not_hide_others(self, manager):
        manager.connect(2)

        def fail():
            raise ValueError("boom")

        futures = [
            manager.run(WorkerTask(name="ok", func=lambda: "done")),
            manager.run(WorkerTask(name="bad", func=fail)),
        ]
        ok, bad = manager.join(futures)

        assert ok.result == "done"
        assert not bad.success
        assert isinstance(bad.error, WorkerTaskError)
        assert "Task bad failed: ValueError: boom" in str(bad.error)
        assert isinstance(bad.error.__cause__, ValueError)

    def test_inline_failure_collected_at_join(self, manager):
        manager.connect(None)

        def fail():
            raise RuntimeError("inline boom")

        future = manager.run(WorkerTask(name="bad", func=fail))
        (outcome,) = manager.join([future])

        assert isinstance(outcome.error, WorkerTaskError)

    def test_run_after_disconnect(self, manager):
        manager.connect(1)
        manager.disconnect()

        assert manager.is_connected is False
        with pytest.raises(ManagerDisconnectedError, match="manager disconnected"):
            manager.run(WorkerTask(name="late", func=lambda: None))

    def test_run_before_connect(self, manager):
        with pytest.raises(ManagerDisconnectedError):
            manager.run(WorkerTask(name="early", func=lambda: None))

    def test_connect_twice_adjusts_size(self, manager):
        manager.connect(2)
        executor = manager._executor
        manager.connect(2)
        assert manager._executor is executor

        manager.connect(3)
        assert manager.worker_count == 3
        assert manager._executor is not executor
        assert manager.join([manager.run(WorkerTask(name="t", func=lambda: 1))])[0].result == 1

    def test_disconnect_waits_for_in_flight_tasks(self, manager):
        manager.connect(1)
        done = threading.Event()

        def slow():
            time.sleep(0.05)
            done.set()

        manager.run(WorkerTask(name="slow", func=slow))
        manager.disconnect()

        assert done.is_set()
