"""Tests for collision-free path allocation."""

import asyncio
from datetime import datetime

from telesync.store import paths
from telesync.store.paths import PathAllocator, PathIndex, note_title
from telesync.utils.helpers import date_string, safe_filename, time_string


class SlowStore:
    """Existence checks yield to the event loop, so allocations interleave."""

    def __init__(self, existing: set[str] | None = None):
        self.existing = existing or set()
        self.checks = 0

    async def exists(self, path: str) -> bool:
        self.checks += 1
        await asyncio.sleep(0)
        return path in self.existing


def test_note_title_truncates_and_sanitizes():
    assert note_title("Hello: world / with a long tail") == "Hello_ world _ with"
    assert note_title("line one\nline two") == "line one line two"


def test_safe_filename_keeps_line_breaks_as_spaces():
    assert safe_filename("a\r\n\tb") == "a b"
    assert safe_filename(" x\x07y\n") == "x_y"


async def test_first_allocation_uses_message_time(allocator, message_time):
    path = await allocator.allocate("notes", "hello", message_time)

    assert path == f"notes/hello - {date_string(message_time)}{time_string(message_time)}.md"
    assert path in allocator.index


async def test_empty_folder_yields_root_relative_path(allocator, message_time):
    path = await allocator.allocate("", "hello", message_time, ".pdf")

    assert path == f"hello - {date_string(message_time)}{time_string(message_time)}.pdf"


async def test_second_allocation_resamples_time(allocator, message_time):
    first = await allocator.allocate("notes", "same title", message_time)
    second = await allocator.allocate("notes", "same title", message_time)

    assert first != second
    assert second.startswith(f"notes/same title - {date_string(message_time)}")
    assert len(allocator.index) == 2


async def test_existing_store_file_is_skipped(store, index, message_time):
    taken = f"hello - {date_string(message_time)}{time_string(message_time)}.md"
    await store.create_text(taken, "already here")
    allocator = PathAllocator(store, index, clock=lambda: datetime(2030, 5, 6, 7, 8, 9))

    path = await allocator.allocate("", "hello", message_time)

    assert path == f"hello - {date_string(message_time)}070809.md"


async def test_concurrent_allocations_are_distinct(message_time):
    store = SlowStore()
    ticks = iter(range(1, 1000))
    allocator = PathAllocator(
        store,
        PathIndex(),
        clock=lambda: datetime.fromtimestamp(message_time.timestamp() + next(ticks)),
    )

    results = await asyncio.gather(
        *(allocator.allocate("inbox", "dup", message_time) for _ in range(10))
    )

    assert len(set(results)) == 10
    assert all(r in allocator.index for r in results)


async def test_stalled_clock_waits_for_next_second(monkeypatch, message_time):
    monkeypatch.setattr(paths, "RESAMPLE_DELAY_S", 0)
    readings = iter([message_time, message_time, message_time.replace(microsecond=0)])
    later = datetime.fromtimestamp(message_time.timestamp() + 1)

    def clock():
        return next(readings, later)

    allocator = PathAllocator(SlowStore(), PathIndex(), clock=clock)
    first = await allocator.allocate("", "x", message_time)
    second = await allocator.allocate("", "x", message_time)

    assert first != second
    assert second.endswith(f"{time_string(later)}.md")


async def test_index_keeps_path_even_if_write_never_happens(index, message_time):
    allocator = PathAllocator(SlowStore(), index, clock=datetime.now)

    path = await allocator.allocate("", "lost", message_time)

    assert path in index
    index.clear()
    assert path not in index
