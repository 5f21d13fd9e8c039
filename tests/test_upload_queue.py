"""Tests for the upload queue worker."""

from __future__ import annotations

import asyncio
from types import MappingProxyType

from boxscan.core.errors import ServiceError, TransientNetworkError, ValidationError
from boxscan.core.notifications import ERROR, Notifier
from boxscan.core.upload_queue import UploadQueueWorker
from boxscan.models.capture import CaptureBundle
from fakes import FakeUploader, SleepRecorder


def _bundle(name: str, created_at: float = 0.0) -> CaptureBundle:
    return CaptureBundle(created_at=created_at, audio_blob=b"wav", metadata=MappingProxyType({"name": name}))


def test_head_retried_until_success_then_fifo() -> None:
    uploader = FakeUploader({"B1": [TransientNetworkError("offline"), TransientNetworkError("offline")]})
    sleep = SleepRecorder()
    worker = UploadQueueWorker(uploader, retry_delay_sec=20.0, sleep=sleep)

    async def scenario() -> None:
        for name in ("B1", "B2", "B3"):
            worker.enqueue(_bundle(name))
        await worker.join()

    asyncio.run(scenario())

    assert uploader.calls == ["B1", "B1", "B1", "B2", "B3"]
    assert uploader.uploaded == ["B1", "B2", "B3"]
    assert sleep.delays == [20.0, 20.0]
    assert worker.uploaded == 3
    assert len(worker) == 0
    assert not worker.is_running


def test_rejected_bundle_is_dropped_and_does_not_block() -> None:
    uploader = FakeUploader({"B2": [ValidationError("bad metadata")]})
    notifier = Notifier()
    worker = UploadQueueWorker(uploader, sleep=SleepRecorder(), notifier=notifier)

    async def scenario() -> None:
        for name in ("B1", "B2", "B3"):
            worker.enqueue(_bundle(name))
        await worker.join()

    asyncio.run(scenario())

    assert uploader.uploaded == ["B1", "B3"]
    assert worker.abandoned == 1
    assert notifier.latest().level == ERROR


def test_service_error_is_not_retried() -> None:
    uploader = FakeUploader({"B1": [ServiceError("500")]})
    sleep = SleepRecorder()
    worker = UploadQueueWorker(uploader, sleep=sleep)

    async def scenario() -> None:
        worker.enqueue(_bundle("B1"))
        await worker.join()

    asyncio.run(scenario())

    assert uploader.calls == ["B1"]
    assert sleep.delays == []
    assert worker.abandoned == 1


def test_unexpected_error_is_retried_like_network_error() -> None:
    uploader = FakeUploader({"B1": [RuntimeError("boom")]})
    sleep = SleepRecorder()
    worker = UploadQueueWorker(uploader, retry_delay_sec=20.0, sleep=sleep)

    async def scenario() -> None:
        worker.enqueue(_bundle("B1"))
        await worker.join()

    asyncio.run(scenario())

    assert uploader.uploaded == ["B1"]
    assert sleep.delays == [20.0]


def test_worker_rearms_after_draining() -> None:
    uploader = FakeUploader()
    worker = UploadQueueWorker(uploader, sleep=SleepRecorder())

    async def scenario() -> None:
        worker.enqueue(_bundle("B1"))
        await worker.join()
        assert not worker.is_running
        worker.enqueue(_bundle("B2"))
        assert worker.is_running
        await worker.join()

    asyncio.run(scenario())

    assert uploader.uploaded == ["B1", "B2"]


def test_backlog_visible_while_head_waits_for_retry() -> None:
    uploader = FakeUploader({"B1": [TransientNetworkError("offline")]})

    async def scenario() -> None:
        release = asyncio.Event()
        delays: list[float] = []

        async def gated_sleep(delay: float) -> None:
            delays.append(delay)
            await release.wait()

        worker = UploadQueueWorker(uploader, retry_delay_sec=20.0, sleep=gated_sleep, clock=lambda: 100.0)
        worker.enqueue(_bundle("B1"))
        worker.enqueue(_bundle("B2"))
        while not delays:
            await asyncio.sleep(0)

        # Enqueue during the retry wait must not start a second worker
        worker.enqueue(_bundle("B3"))
        assert worker.backlog == 3
        head = worker.snapshot()[0]
        assert head.attempt == 1
        assert head.next_retry_at == 120.0
        assert uploader.calls == ["B1"]

        release.set()
        await worker.join()
        assert uploader.uploaded == ["B1", "B2", "B3"]

    asyncio.run(scenario())


def test_stop_keeps_queued_entries() -> None:
    uploader = FakeUploader({"B1": [TransientNetworkError("offline")]})

    async def scenario() -> None:
        never = asyncio.Event()

        async def blocking_sleep(delay: float) -> None:
            await never.wait()

        worker = UploadQueueWorker(uploader, sleep=blocking_sleep)
        worker.enqueue(_bundle("B1"))
        worker.enqueue(_bundle("B2"))
        for _ in range(5):
            await asyncio.sleep(0)

        await worker.stop()
        assert not worker.is_running
        assert len(worker) == 2

    asyncio.run(scenario())
