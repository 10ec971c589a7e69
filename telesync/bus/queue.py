"""批量追加模式的消息队列。"""

from loguru import logger

from telesync.bus.events import InboundMessage, QueuedEntry


class MessageQueue:
    """
    有序、无界、只追加的队列。

    插入顺序即到达顺序。enqueue 和 drain 之间没有 await，
    因此在协作式调度下对交错的协程是原子的。
    """

    def __init__(self):
        self._entries: list[QueuedEntry] = []

    def enqueue(
        self,
        message: InboundMessage,
        content: str,
        error: BaseException | None = None,
    ) -> QueuedEntry:
        """追加一条消息及其渲染后的内容。"""
        entry = QueuedEntry(message=message, content=content, error=error)
        self._entries.append(entry)
        logger.debug(f"消息 {message.message_id} 已入队（队列长度 {len(self._entries)}）")
        return entry

    def drain(self) -> list[QueuedEntry]:
        """一次性取出全部条目并清空队列。"""
        entries, self._entries = self._entries, []
        return entries

    def restore(self, entries: list[QueuedEntry]) -> None:
        """把未能写入的条目放回队首，保持原有顺序。"""
        self._entries[:0] = entries

    def snapshot(self) -> list[QueuedEntry]:
        """返回当前条目的副本，不修改队列。"""
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)
