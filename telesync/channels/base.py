"""聊天平台的频道基类接口。"""

from abc import ABC, abstractmethod
from typing import Any

from telesync.bus.events import InboundMessage


class BaseChannel(ABC):
    """
    消息回复界面的抽象基类。

    路由器和摄取器只通过此接口与聊天平台交互：回复、编辑、删除、
    以及在消息处理完成后进行确认。
    """

    name: str = "base"

    def __init__(self, config: Any):
        """
        初始化频道。

        参数:
            config: 频道特定的配置。
        """
        self.config = config
        self._running = False

    @abstractmethod
    async def start(self) -> None:
        """启动频道并开始监听消息。"""
        pass

    @abstractmethod
    async def stop(self) -> None:
        """停止频道并清理资源。"""
        pass

    @abstractmethod
    async def reply(
        self,
        chat_id: int,
        text: str,
        reply_to: int | None = None,
        **options: Any,
    ) -> int | None:
        """
        在会话中发送一条消息。

        返回:
            新消息的 ID，发送失败时返回 None。
        """
        pass

    @abstractmethod
    async def edit(self, chat_id: int, message_id: int, text: str) -> None:
        """编辑已发送的消息。"""
        pass

    @abstractmethod
    async def delete(self, chat_id: int, message_id: int) -> None:
        """删除消息。"""
        pass

    @abstractmethod
    async def mark_processed(
        self,
        message: InboundMessage,
        error: BaseException | None = None,
    ) -> None:
        """
        向来源会话确认消息已被最终处理。

        每条消息恰好调用一次，无论成功还是失败。
        """
        pass

    def is_allowed(self, handle: str | None) -> bool:
        """
        检查发送者是否被允许使用此机器人。

        参数:
            handle: 发送者的用户名（可能缺失）。

        返回:
            如果允许返回 True，否则返回 False。
        """
        if not handle:
            return False
        allow_list = getattr(self.config, "allow_from", [])
        return handle.lstrip("@") in {a.lstrip("@") for a in allow_list}
