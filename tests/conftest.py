"""Shared fixtures: in-memory channel and transports, a vault in tmp_path."""

from datetime import datetime, timedelta
from typing import Any

import pytest

from telesync.bus.events import Attachment, FileType, InboundMessage
from telesync.bus.queue import MessageQueue
from telesync.channels.base import BaseChannel
from telesync.config.schema import TelegramConfig, VaultConfig
from telesync.errors import TransportFailure, TransportTooLarge
from telesync.ingest.files import FileIngestor
from telesync.ingest.router import MessageRouter
from telesync.ingest.templates import TemplateRenderer
from telesync.store.paths import PathAllocator, PathIndex
from telesync.store.vault import VaultStore
from telesync.transport.base import FallbackTransport, FileTransport

MESSAGE_DATE = 1704164645  # 2024-01-02 03:04:05 UTC


class FakeChannel(BaseChannel):
    name = "fake"

    def __init__(self, allow_from: list[str] | None = None):
        super().__init__(TelegramConfig(allow_from=allow_from or ["alice"]))
        self.replies: list[dict[str, Any]] = []
        self.edits: list[tuple[int, int, str]] = []
        self.deletes: list[tuple[int, int]] = []
        self.processed: list[tuple[InboundMessage, BaseException | None]] = []
        self._next_id = 1000

    async def start(self) -> None:
        self._running = True

    async def stop(self) -> None:
        self._running = False

    async def reply(self, chat_id, text, reply_to=None, **options):
        self._next_id += 1
        self.replies.append(
            {"chat_id": chat_id, "text": text, "reply_to": reply_to, "options": options}
        )
        return self._next_id

    async def edit(self, chat_id, message_id, text):
        self.edits.append((chat_id, message_id, text))

    async def delete(self, chat_id, message_id):
        self.deletes.append((chat_id, message_id))

    async def mark_processed(self, message, error=None):
        self.processed.append((message, error))


class FakeTransport(FileTransport):
    """Serves files from memory; refuses anything above `ceiling` bytes."""

    def __init__(self, ceiling: int = 20 * 1024 * 1024, chunk_size: int = 4):
        self.files: dict[str, bytes] = {}
        self.links: dict[str, str] = {}
        self.failing: set[str] = set()
        self.interrupted: set[str] = set()
        self.ceiling = ceiling
        self.chunk_size = chunk_size
        self.streamed: list[str] = []

    def add(self, file_id: str, data: bytes, link: str) -> None:
        self.files[file_id] = data
        self.links[file_id] = link

    async def resolve_link(self, file_id: str) -> str:
        if file_id in self.failing:
            raise TransportFailure(f"cannot fetch {file_id}")
        if len(self.files[file_id]) > self.ceiling:
            raise TransportTooLarge("Bad Request: file is too big")
        return self.links[file_id]

    async def open_stream(self, file_id: str):
        self.streamed.append(file_id)
        data = self.files[file_id]
        for i in range(0, len(data), self.chunk_size):
            yield data[i:i + self.chunk_size]
            if file_id in self.interrupted:
                raise TransportFailure("connection reset")


class FakeFallback(FallbackTransport):
    def __init__(self, transport: FakeTransport, fail: bool = False):
        self.transport = transport
        self.fail = fail
        self.calls: list[tuple[str, int | None]] = []

    async def fetch_all(self, file_id, size_hint):
        self.calls.append((file_id, size_hint))
        if self.fail:
            raise TransportFailure("local Bot API server unreachable")
        return self.transport.files[file_id]


class StepClock:
    """Returns the message time plus one more second on every call."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        self.now += timedelta(seconds=1)
        return self.now


def make_message(
    message_id: int = 1,
    username: str | None = "alice",
    text: str | None = None,
    caption: str | None = None,
    attachment_type: FileType | None = None,
    attachments: tuple[Attachment, ...] = (),
    date: int = MESSAGE_DATE,
) -> InboundMessage:
    return InboundMessage(
        message_id=message_id,
        chat_id=42,
        date=date,
        username=username,
        text=text,
        caption=caption,
        attachment_type=attachment_type,
        attachments=attachments,
    )


@pytest.fixture()
def message_time() -> datetime:
    return datetime.fromtimestamp(MESSAGE_DATE)


@pytest.fixture()
def channel() -> FakeChannel:
    return FakeChannel()


@pytest.fixture()
def store(tmp_path) -> VaultStore:
    return VaultStore(tmp_path / "vault")


@pytest.fixture()
def index() -> PathIndex:
    return PathIndex()


@pytest.fixture()
def allocator(store, index, message_time) -> PathAllocator:
    return PathAllocator(store, index, clock=StepClock(message_time))


@pytest.fixture()
def queue() -> MessageQueue:
    return MessageQueue()


@pytest.fixture()
def vault_config() -> VaultConfig:
    return VaultConfig()


@pytest.fixture()
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture()
def fallback(transport) -> FakeFallback:
    return FakeFallback(transport)


@pytest.fixture()
def ingestor(channel, store, allocator, transport, fallback, queue, vault_config) -> FileIngestor:
    return FileIngestor(
        channel=channel,
        store=store,
        allocator=allocator,
        transport=transport,
        fallback=fallback,
        renderer=TemplateRenderer(store),
        queue=queue,
        config=vault_config,
    )


@pytest.fixture()
def router(channel, ingestor, queue, vault_config) -> MessageRouter:
    return MessageRouter(
        channel=channel,
        ingestor=ingestor,
        renderer=ingestor.renderer,
        queue=queue,
        config=vault_config,
    )
