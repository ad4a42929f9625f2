import asyncio

import pytest

from storefront.schemas.media import UploadStatus
from storefront.services.progress import UploadProgressTracker

pytestmark = pytest.mark.anyio


async def test_terminal_states_are_final():
    tracker = UploadProgressTracker(retention_seconds=10)
    tracker.track(["a.png", "b.png"])
    tracker.update("a.png", 40)
    tracker.update("a.png", 20)
    assert tracker.get("a.png").percent == 40

    tracker.fail("a.png", "boom")
    tracker.complete("a.png", "http://img/a.png")
    tracker.update("a.png", 90)
    record = tracker.get("a.png")
    assert (record.status, record.error, record.percent) == (UploadStatus.ERROR, "boom", 40)
    assert not tracker.all_terminal()


async def test_percent_is_capped_until_completion():
    tracker = UploadProgressTracker()
    tracker.track(["a.png"])
    tracker.update("a.png", 150)
    assert tracker.get("a.png").percent == 99
    tracker.complete("a.png")
    assert tracker.get("a.png").percent == 100
    tracker.clear_all()


async def test_map_is_cleared_after_retention():
    tracker = UploadProgressTracker(retention_seconds=0.2)
    tracker.track(["a.png", "b.png"])
    tracker.complete("a.png", "http://img/a.png")
    tracker.fail("b.png", "too big")
    assert tracker.all_terminal()
    assert tracker.counts() == (1, 1)

    await asyncio.sleep(0.05)
    assert len(tracker.items()) == 2
    await asyncio.sleep(0.3)
    assert tracker.items() == []


async def test_new_batch_cancels_pending_clear():
    tracker = UploadProgressTracker(retention_seconds=0.02)
    tracker.track(["a.png"])
    tracker.complete("a.png")
    tracker.track(["b.png"])
    await asyncio.sleep(0.05)
    assert [p.filename for p in tracker.items()] == ["b.png"]


def test_updates_for_unknown_files_are_ignored():
    tracker = UploadProgressTracker()
    tracker.update("ghost.png", 50)
    assert tracker.progress() == {}
