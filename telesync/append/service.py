"""追加服务 - 定期把排队的消息追加到同一个笔记。"""

import asyncio

from loguru import logger

from telesync.bus.queue import MessageQueue
from telesync.store.vault import VaultStore

# 默认间隔：10 秒
DEFAULT_APPEND_INTERVAL_S = 10

# 相邻消息之间的分隔符
ENTRY_SEPARATOR = "\n\n***\n\n"


class AppendService:
    """
    批量追加模式下消费 MessageQueue。

    每次触发时按到达顺序取出全部条目，追加到目标笔记末尾。
    写入失败时条目被放回队首，下次再试。
    """

    def __init__(
        self,
        store: VaultStore,
        queue: MessageQueue,
        target: str = "Telegram.md",
        interval_s: int = DEFAULT_APPEND_INTERVAL_S,
        enabled: bool = True,
    ):
        self.store = store
        self.queue = queue
        self.target = target
        self.interval_s = interval_s
        self.enabled = enabled
        self._running = False
        self._task: asyncio.Task | None = None

    async def start(self) -> None:
        """启动追加服务。"""
        if not self.enabled:
            logger.info("批量追加已禁用")
            return

        self._running = True
        self._task = asyncio.create_task(self._run_loop())
        logger.info(f"批量追加已启动（每 {self.interval_s} 秒写入 {self.target}）")

    async def stop(self) -> None:
        """停止服务并写入剩余的条目。"""
        self._running = False
        if self._task:
            self._task.cancel()
            self._task = None
        if self.enabled:
            await self.flush()

    async def _run_loop(self) -> None:
        """主循环。"""
        while self._running:
            try:
                await asyncio.sleep(self.interval_s)
                if self._running:
                    await self.flush()
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"批量追加错误：{e}")

    async def flush(self) -> int:
        """
        立即写入队列中的全部条目。

        返回:
            写入的条目数。
        """
        entries = self.queue.drain()
        if not entries:
            return 0

        body = ENTRY_SEPARATOR.join(entry.content for entry in entries)
        try:
            prefix = ENTRY_SEPARATOR if await self.store.exists(self.target) else ""
            await self.store.append_text(self.target, prefix + body)
        except Exception:
            self.queue.restore(entries)
            raise

        for entry in entries:
            if entry.error is not None:
                logger.warning(
                    f"消息 {entry.message.message_id} 以错误标记追加到 {self.target}：{entry.error}"
                )
        logger.info(f"已向 {self.target} 追加 {len(entries)} 条消息")
        return len(entries)
