"""入站消息的路由。"""

from loguru import logger

from telesync.bus.events import InboundMessage
from telesync.bus.queue import MessageQueue
from telesync.channels.base import BaseChannel
from telesync.config.schema import VaultConfig
from telesync.errors import AuthorizationDenied
from telesync.ingest.files import FileIngestor
from telesync.ingest.notes import NoteWriter
from telesync.ingest.release import ReleaseNotice
from telesync.ingest.templates import TemplateRenderer


class MessageRouter:
    """
    摄取的入口：检查发送者，区分纯文本和带文件的消息。

    route() 从不向调用者抛出异常：授权失败变为聊天回复，
    其他失败变为笔记内容或确认时的错误。
    """

    def __init__(
        self,
        channel: BaseChannel,
        ingestor: FileIngestor,
        renderer: TemplateRenderer,
        queue: MessageQueue,
        config: VaultConfig,
        release: ReleaseNotice | None = None,
    ):
        self.channel = channel
        self.ingestor = ingestor
        self.renderer = renderer
        self.queue = queue
        self.config = config
        self.release = release
        self.notes: NoteWriter = ingestor.notes
        self._release_checked = False

    async def route(self, message: InboundMessage) -> None:
        """处理一条入站消息。"""
        if not self.channel.is_allowed(message.username):
            await self._deny(message, AuthorizationDenied(message.username))
            return

        await self._check_release(message)

        if not message.text:
            await self.ingestor.process(message)
            return

        try:
            await self._handle_text(message)
        except Exception as e:
            logger.error(f"处理消息 {message.message_id} 时出错：{e}")
            await self.ingestor.finalize(message, e)

    async def _deny(self, message: InboundMessage, error: AuthorizationDenied) -> None:
        logger.warning(f"拒绝消息 {message.message_id}：{error}")
        try:
            await self.channel.reply(
                message.chat_id,
                f"Access denied. Add your username {error.handle} "
                'in the setting "telegram.allowFrom".',
                reply_to=message.message_id,
            )
        except Exception as e:
            logger.error(f"发送拒绝通知失败：{e}")

    async def _check_release(self, message: InboundMessage) -> None:
        if self.release is None or self._release_checked:
            return
        self._release_checked = True
        try:
            await self.release.check(message.chat_id)
        except Exception as e:
            logger.error(f"发布说明检查失败：{e}")

    async def _handle_text(self, message: InboundMessage) -> None:
        await self.notes.store.ensure_folder(self.config.notes_location)
        content = await self.renderer.render(self.config.template_file, message)

        if self.config.append_to_note:
            self.queue.enqueue(message, content)
        else:
            await self.notes.write(message, message.text or "", content)

        await self.ingestor.finalize(message, None)
