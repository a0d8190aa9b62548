"""Tests for scheduler.py — settle delays and buffer debouncing."""

import asyncio
from pathlib import PurePosixPath
from unittest.mock import AsyncMock, MagicMock

import pytest

from autotag.editor import TextBuffer
from autotag.scheduler import ChangeScheduler
from autotag.vault.store import Document

DELAY = 0.05


def _doc(name: str = "a.md") -> Document:
    return Document(PurePosixPath(name), ".md")


@pytest.fixture
def process_document() -> AsyncMock:
    return AsyncMock(return_value=True)


@pytest.fixture
def process_buffer() -> MagicMock:
    return MagicMock(return_value=True)


@pytest.fixture
def available() -> MagicMock:
    return MagicMock(return_value=True)


@pytest.fixture
def scheduler(process_document, process_buffer, available) -> ChangeScheduler:
    return ChangeScheduler(
        process_document=process_document,
        process_buffer=process_buffer,
        document_available=available,
        settle_delay=DELAY,
        quiet_delay=DELAY,
    )


class TestScheduleDocument:
    async def test_fires_after_delay(self, scheduler, process_document):
        doc = _doc()
        scheduler.schedule_document(doc)
        assert scheduler.pending_documents == 1
        process_document.assert_not_awaited()

        await asyncio.sleep(DELAY * 4)
        process_document.assert_awaited_once_with(doc)
        assert scheduler.pending_documents == 0

    async def test_each_event_fires_independently(self, scheduler, process_document):
        doc = _doc()
        scheduler.schedule_document(doc)
        scheduler.schedule_document(doc)
        scheduler.schedule_document(_doc("b.md"))
        await asyncio.sleep(DELAY * 4)
        assert process_document.await_count == 3

    async def test_unavailable_document_skipped(
        self, scheduler, process_document, available
    ):
        available.return_value = False
        scheduler.schedule_document(_doc())
        await asyncio.sleep(DELAY * 4)
        process_document.assert_not_awaited()
        assert scheduler.pending_documents == 0

    async def test_failure_is_contained(self, scheduler, process_document):
        process_document.side_effect = RuntimeError("boom")
        scheduler.schedule_document(_doc())
        await asyncio.sleep(DELAY * 4)
        # Next event still works
        process_document.side_effect = None
        scheduler.schedule_document(_doc())
        await asyncio.sleep(DELAY * 4)
        assert process_document.await_count == 2
        assert scheduler.pending_documents == 0


class TestScheduleBuffer:
    async def test_three_edits_one_rewrite_with_final_content(self):
        seen: list[str] = []
        scheduler = ChangeScheduler(
            process_document=AsyncMock(),
            process_buffer=lambda buf: seen.append(buf.get_value()),
            document_available=lambda doc: True,
            quiet_delay=DELAY * 2,
        )
        buf = TextBuffer("p", buffer_id="buf")
        scheduler.schedule_buffer(buf)
        await asyncio.sleep(DELAY / 2)
        buf.set_value("pro")
        scheduler.schedule_buffer(buf)
        await asyncio.sleep(DELAY / 2)
        buf.set_value("project")
        scheduler.schedule_buffer(buf)
        assert scheduler.pending_buffers == 1

        await asyncio.sleep(DELAY * 6)
        assert seen == ["project"]
        assert scheduler.pending_buffers == 0

    async def test_buffers_debounce_independently(self, scheduler, process_buffer):
        a = TextBuffer(buffer_id="a")
        b = TextBuffer(buffer_id="b")
        scheduler.schedule_buffer(a)
        scheduler.schedule_buffer(b)
        scheduler.schedule_buffer(a)
        assert scheduler.pending_buffers == 2
        await asyncio.sleep(DELAY * 4)
        assert sorted(c.args[0].buffer_id for c in process_buffer.call_args_list) == [
            "a",
            "b",
        ]

    async def test_closed_buffer_skipped(self, scheduler, process_buffer):
        buf = TextBuffer()
        scheduler.schedule_buffer(buf)
        buf.close()
        await asyncio.sleep(DELAY * 4)
        process_buffer.assert_not_called()
        assert scheduler.pending_buffers == 0

    async def test_cancel_buffer(self, scheduler, process_buffer):
        buf = TextBuffer(buffer_id="x")
        scheduler.schedule_buffer(buf)
        assert scheduler.cancel_buffer("x") is True
        assert scheduler.cancel_buffer("x") is False
        await asyncio.sleep(DELAY * 4)
        process_buffer.assert_not_called()

    async def test_failure_is_contained(self, scheduler, process_buffer):
        process_buffer.side_effect = RuntimeError("boom")
        scheduler.schedule_buffer(TextBuffer())
        await asyncio.sleep(DELAY * 4)
        process_buffer.assert_called_once()
        assert scheduler.pending_buffers == 0


class TestClose:
    async def test_cancels_pending(self, scheduler, process_document, process_buffer):
        scheduler.schedule_document(_doc())
        scheduler.schedule_buffer(TextBuffer())
        await scheduler.close()
        assert scheduler.pending_documents == 0
        assert scheduler.pending_buffers == 0
        await asyncio.sleep(DELAY * 4)
        process_document.assert_not_awaited()
        process_buffer.assert_not_called()

    async def test_no_scheduling_after_close(self, scheduler):
        await scheduler.close()
        scheduler.schedule_document(_doc())
        scheduler.schedule_buffer(TextBuffer())
        assert scheduler.pending_documents == 0
        assert scheduler.pending_buffers == 0

    async def test_waits_for_running_rewrite(self, available):
        finished = asyncio.Event()

        async def _slow(doc: Document) -> None:
            await asyncio.sleep(DELAY * 2)
            finished.set()

        scheduler = ChangeScheduler(
            process_document=_slow,
            process_buffer=MagicMock(),
            document_available=available,
            settle_delay=0,
        )
        scheduler.schedule_document(_doc())
        await asyncio.sleep(DELAY / 2)  # timer fired, rewrite in flight
        assert scheduler.pending_documents == 1
        await scheduler.close()
        assert finished.is_set()
