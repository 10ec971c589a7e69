"""使用 python-telegram-bot 的 Telegram 频道实现。"""

import asyncio
from typing import Any, Awaitable, Callable

from loguru import logger
from telegram import Message, ReplyParameters, Update
from telegram.error import TelegramError
from telegram.ext import Application, CommandHandler, ContextTypes, MessageHandler, filters

from telesync.bus.events import Attachment, FileType, InboundMessage
from telesync.channels.base import BaseChannel
from telesync.config.schema import TelegramConfig

PROCESSED_REACTION = "👍"


def to_inbound(message: Message) -> InboundMessage:
    """
    将 telegram.Message 转换为 InboundMessage。

    只取第一个被填充的附件字段（按 FileType 的顺序）；
    照片的多个尺寸按来源顺序全部保留。
    """
    attachment_type: FileType | None = None
    attachments: tuple[Attachment, ...] = ()

    for file_type in FileType:
        value = getattr(message, file_type.value, None)
        if not value:
            continue
        items = value if isinstance(value, (list, tuple)) else (value,)
        attachments = tuple(
            Attachment(
                file_type=file_type,
                file_id=item.file_id,
                file_unique_id=item.file_unique_id,
                file_size=item.file_size,
                mime_type=getattr(item, "mime_type", None),
                file_name=getattr(item, "file_name", None),
            )
            for item in items
        )
        attachment_type = file_type
        break

    user = message.from_user
    return InboundMessage(
        message_id=message.message_id,
        chat_id=message.chat_id,
        date=int(message.date.timestamp()),
        username=user.username if user else None,
        text=message.text,
        caption=message.caption,
        attachment_type=attachment_type,
        attachments=attachments,
    )


class TelegramChannel(BaseChannel):
    """
    使用长轮询的 Telegram 频道。

    简单可靠 - 不需要 webhook/公共 IP。不同消息的处理可以并发进行。
    """

    name = "telegram"

    def __init__(
        self,
        config: TelegramConfig,
        on_message: Callable[[InboundMessage], Awaitable[None]] | None = None,
    ):
        super().__init__(config)
        self.config: TelegramConfig = config
        self.on_message = on_message
        self._app: Application | None = None

    @property
    def bot(self):
        if self._app is None:
            raise RuntimeError("Telegram 机器人未运行")
        return self._app.bot

    def build(self) -> Application:
        """构建应用（不启动轮询）。"""
        if self._app is None:
            builder = Application.builder().token(self.config.token).concurrent_updates(True)
            if self.config.proxy:
                builder = builder.proxy(self.config.proxy).get_updates_proxy(self.config.proxy)
            self._app = builder.build()

            # 除命令外的所有消息
            self._app.add_handler(
                MessageHandler(filters.UpdateType.MESSAGE & ~filters.COMMAND, self._on_message)
            )
            self._app.add_handler(CommandHandler("start", self._on_start))
        return self._app

    async def start(self) -> None:
        """使用长轮询启动 Telegram 机器人。"""
        if not self.config.token:
            logger.error("Telegram 机器人令牌未配置")
            return

        self._running = True
        app = self.build()

        logger.info("正在启动 Telegram 机器人（轮询模式）...")

        await app.initialize()
        await app.start()

        bot_info = await app.bot.get_me()
        logger.info(f"Telegram 机器人 @{bot_info.username} 已连接")

        await app.updater.start_polling(allowed_updates=["message"])

        # 保持运行直到停止
        while self._running:
            await asyncio.sleep(1)

    async def stop(self) -> None:
        """停止 Telegram 机器人。"""
        self._running = False

        if self._app:
            logger.info("正在停止 Telegram 机器人...")
            if self._app.updater and self._app.updater.running:
                await self._app.updater.stop()
            if self._app.running:
                await self._app.stop()
            await self._app.shutdown()
            self._app = None

    async def reply(
        self,
        chat_id: int,
        text: str,
        reply_to: int | None = None,
        **options: Any,
    ) -> int | None:
        if not self._app:
            logger.warning("Telegram 机器人未运行")
            return None
        try:
            sent = await self._app.bot.send_message(
                chat_id=chat_id,
                text=text,
                reply_parameters=ReplyParameters(message_id=reply_to) if reply_to else None,
                **options,
            )
        except TelegramError as e:
            logger.error(f"发送 Telegram 消息时出错：{e}")
            return None
        return sent.message_id

    async def edit(self, chat_id: int, message_id: int, text: str) -> None:
        if not self._app:
            return
        await self._app.bot.edit_message_text(text=text, chat_id=chat_id, message_id=message_id)

    async def delete(self, chat_id: int, message_id: int) -> None:
        if not self._app:
            return
        await self._app.bot.delete_message(chat_id=chat_id, message_id=message_id)

    async def mark_processed(
        self,
        message: InboundMessage,
        error: BaseException | None = None,
    ) -> None:
        if error is not None:
            await self.reply(
                message.chat_id,
                f"❌ Something went wrong while processing this message: {error}",
                reply_to=message.message_id,
            )
            return

        if not self._app:
            return

        if self.config.delete_messages:
            try:
                await self.delete(message.chat_id, message.message_id)
                return
            except TelegramError as e:
                logger.warning(f"删除消息 {message.message_id} 失败：{e}")

        try:
            await self._app.bot.set_message_reaction(
                chat_id=message.chat_id,
                message_id=message.message_id,
                reaction=PROCESSED_REACTION,
            )
        except TelegramError as e:
            # 某些会话不允许反应，改为回复
            logger.debug(f"添加反应失败，改为回复：{e}")
            await self.reply(message.chat_id, "...✅...", reply_to=message.message_id)

    async def _on_start(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        """处理 /start 命令。"""
        if not update.message or not update.effective_user:
            return

        user = update.effective_user
        await update.message.reply_text(
            f"👋 Hi {user.first_name}! Send me text or files and I will save them to your vault."
        )

    async def _on_message(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        """处理传入的消息（文本和各种附件）。"""
        if not update.message:
            return

        message = to_inbound(update.message)
        logger.debug(
            f"来自 {message.username} 的 Telegram 消息 {message.message_id}"
            f"（附件：{message.attachment_type.value if message.attachment_type else '无'}）"
        )

        if self.on_message is None:
            logger.warning("没有设置消息处理器，忽略消息")
            return
        await self.on_message(message)
