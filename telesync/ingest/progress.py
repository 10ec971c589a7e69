"""下载进度指示器。"""

from dataclasses import dataclass

from loguru import logger

from telesync.channels.base import BaseChannel
from telesync.utils.helpers import format_bytes

FILLED = "▓"
EMPTY = "░"


@dataclass
class ProgressStages:
    """
    把连续的进度映射到少量离散阶段。

    只有跨越阶段边界时才需要编辑消息，以免触发 Telegram 的频率限制。
    """

    stages: int = 10

    def stage_for(self, received: int, total: int | None) -> int:
        if not total or total <= 0:
            return 0
        ratio = min(received / total, 1.0)
        return int(ratio * self.stages)

    def render(self, label: str, stage: int, received: int = 0, total: int | None = None) -> str:
        stage = max(0, min(stage, self.stages))
        bar = FILLED * stage + EMPTY * (self.stages - stage)
        percent = stage * 100 // self.stages
        return f"{label}\n{bar} {percent}%\n{format_bytes(received)} / {format_bytes(total)}"


@dataclass
class ProgressHandle:
    """一个正在显示的进度消息。"""

    chat_id: int
    message_id: int
    label: str


class ProgressReporter:
    """
    在来源会话中显示并更新进度消息，传输结束后删除。

    频道不可用或任何发送错误都只记录日志，不影响下载。
    """

    def __init__(self, channel: BaseChannel | None, stages: ProgressStages | None = None):
        self.channel = channel
        self.stages = stages or ProgressStages()

    async def start(
        self,
        chat_id: int,
        reply_to: int | None = None,
        label: str = "downloading",
    ) -> ProgressHandle | None:
        if self.channel is None:
            return None
        try:
            message_id = await self.channel.reply(
                chat_id, self.stages.render(label, 0), reply_to=reply_to
            )
        except Exception as e:
            logger.warning(f"创建进度消息失败：{e}")
            return None
        if message_id is None:
            return None
        return ProgressHandle(chat_id=chat_id, message_id=message_id, label=label)

    async def update(
        self,
        handle: ProgressHandle | None,
        total: int | None,
        received: int,
        stage: int,
    ) -> int:
        """
        报告新的进度。

        参数:
            handle: start() 返回的句柄。
            total: 总字节数（可能未知）。
            received: 已接收的字节数。
            stage: 当前已显示的阶段。

        返回:
            更新后的阶段。只有新阶段大于当前阶段时才会编辑消息。
        """
        new_stage = self.stages.stage_for(received, total)
        if new_stage <= stage:
            return stage
        if handle is None or self.channel is None:
            return new_stage
        try:
            await self.channel.edit(
                handle.chat_id,
                handle.message_id,
                self.stages.render(handle.label, new_stage, received, total),
            )
        except Exception as e:
            logger.debug(f"更新进度消息失败：{e}")
        return new_stage

    async def stop(self, handle: ProgressHandle | None) -> None:
        if handle is None or self.channel is None:
            return
        try:
            await self.channel.delete(handle.chat_id, handle.message_id)
        except Exception as e:
            logger.debug(f"删除进度消息失败：{e}")
