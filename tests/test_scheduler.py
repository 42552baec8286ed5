"""Concurrency tests for the direct and asynchronous schedulers."""

from __future__ import annotations

import threading
from collections import defaultdict
from pathlib import Path
from typing import Dict, List

import pytest

from logrotor import RotatingLogStore, StoreClosedError, WriteError
from logrotor.core.active_file import ActiveFileHandle
from logrotor.core.scheduler import AsyncScheduler, DirectScheduler

from .helpers import ErrorSink, FakeClock, make_config

THREADS = 4
PER_THREAD = 150


def _read_all_lines(store: RotatingLogStore) -> List[str]:
    lines: List[str] = []
    for generation in reversed(store.generations()):
        lines.extend(generation.path.read_text("utf-8").splitlines())
    lines.extend(store.config.active_path.read_text("utf-8").splitlines())
    return lines


@pytest.mark.parametrize("async_mode", [False, True])
def test_each_producer_keeps_its_own_order(tmp_path: Path, async_mode: bool) -> None:
    config = make_config(
        tmp_path,
        max_file_size_bytes=2048,
        max_generations=100,
        async_mode=async_mode,
        queue_capacity=16 if async_mode else None,
    )
    store = RotatingLogStore(config, clock=FakeClock())
    start = threading.Barrier(THREADS)

    def _produce(worker: int) -> None:
        start.wait()
        for seq in range(PER_THREAD):
            store.info(f"worker={worker} seq={seq}")

    with store:
        threads = [threading.Thread(target=_produce, args=(idx,)) for idx in range(THREADS)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

    assert store.rotation_count > 0
    seen: Dict[int, List[int]] = defaultdict(list)
    for line in _read_all_lines(store):
        message = line.split("] ", 2)[2]
        worker_part, seq_part = message.split()
        seen[int(worker_part.split("=")[1])].append(int(seq_part.split("=")[1]))

    assert sorted(seen) == list(range(THREADS))
    for sequence in seen.values():
        assert sequence == list(range(PER_THREAD))


def test_create_scheduler_follows_async_mode(tmp_path: Path) -> None:
    with RotatingLogStore(make_config(tmp_path, base_name="sync")) as store:
        assert isinstance(store._scheduler, DirectScheduler)
    with RotatingLogStore(make_config(tmp_path, base_name="queued", async_mode=True)) as store:
        assert isinstance(store._scheduler, AsyncScheduler)
        assert store._scheduler._worker.name == "logrotor-writer-queued"


def test_async_flush_waits_for_queue(tmp_path: Path) -> None:
    config = make_config(tmp_path, async_mode=True, max_file_size_bytes=1 << 20)
    with RotatingLogStore(config, clock=FakeClock()) as store:
        for idx in range(200):
            store.info(f"queued {idx}")
        store.flush()
        assert store._scheduler.pending == 0
        assert len(config.active_path.read_text("utf-8").splitlines()) == 200
        assert store.records_written == 200


def test_bounded_queue_applies_backpressure(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    config = make_config(tmp_path, async_mode=True, queue_capacity=2)
    gate = threading.Event()
    real_append = ActiveFileHandle.append

    def _slow_append(self, data: bytes) -> None:
        gate.wait(timeout=10)
        real_append(self, data)

    monkeypatch.setattr(ActiveFileHandle, "append", _slow_append)
    store = RotatingLogStore(config, clock=FakeClock()).open()
    produced = threading.Event()

    def _producer() -> None:
        for idx in range(10):
            store.info(f"pressure {idx}")
        produced.set()

    thread = threading.Thread(target=_producer)
    thread.start()
    # worker holds one record, queue holds two, producer must wait
    assert not produced.wait(timeout=0.3)
    gate.set()
    thread.join(timeout=10)
    assert produced.is_set()
    store.close()

    assert len(config.active_path.read_text("utf-8").splitlines()) == 10


def test_direct_write_errors_reach_the_caller(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    def _disk_full(self, data: bytes) -> None:
        raise WriteError("No space left on device")

    with RotatingLogStore(make_config(tmp_path), clock=FakeClock()) as store:
        monkeypatch.setattr(ActiveFileHandle, "append", _disk_full)
        with pytest.raises(WriteError):
            store.info("lost")
        monkeypatch.undo()
        store.info("kept")

    assert config_lines(tmp_path) == ["kept"]


def test_async_write_errors_go_to_handler(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    sink = ErrorSink()
    real_append = ActiveFileHandle.append

    def _flaky(self, data: bytes) -> None:
        if b"boom" in data:
            raise WriteError("No space left on device")
        real_append(self, data)

    monkeypatch.setattr(ActiveFileHandle, "append", _flaky)
    config = make_config(tmp_path, async_mode=True)
    with RotatingLogStore(config, clock=FakeClock(), error_handler=sink) as store:
        assert store.info("boom") is True
        store.info("after")
        store.flush()

    assert len(sink.errors) == 1
    assert isinstance(sink.errors[0], WriteError)
    assert config_lines(tmp_path) == ["after"]


def test_async_submit_after_close_is_rejected(tmp_path: Path) -> None:
    store = RotatingLogStore(make_config(tmp_path, async_mode=True)).open()
    scheduler = store._scheduler
    store.close()
    assert not scheduler._worker.is_alive()
    with pytest.raises(StoreClosedError):
        store.info("late")


@pytest.mark.parametrize("async_mode", [False, True])
def test_forced_rotation_after_close_is_rejected(tmp_path: Path, async_mode: bool) -> None:
    store = RotatingLogStore(make_config(tmp_path, async_mode=async_mode), clock=FakeClock()).open()
    store.info("before close")
    scheduler = store._scheduler
    store.close()

    with pytest.raises(StoreClosedError):
        scheduler.rotate()
    assert scheduler.active.is_open is False
    assert scheduler.rotation_count == 0
    assert not (tmp_path / "app.1").exists()


def config_lines(directory: Path) -> List[str]:
    text = (directory / "app.log").read_text("utf-8")
    return [line.split("] ", 2)[2] for line in text.splitlines()]
