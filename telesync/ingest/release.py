"""升级后发送一次发布说明。"""

from typing import Callable

from loguru import logger
from telegram import InlineKeyboardButton, InlineKeyboardMarkup

from telesync.channels.base import BaseChannel
from telesync.config.schema import Config
from telesync.release_notes import (
    BUG_FIXES,
    NEW_FEATURES,
    POSSIBLE_ROADMAP,
    PRE_RELEASE_MARKER,
    RELEASE_VERSION,
)


def normalize_version(version: str) -> str:
    return version.replace(PRE_RELEASE_MARKER, "")


class ReleaseNotice:
    """
    比较持久化的版本标记与正在运行的版本。

    - 尚无标记：静默保存当前版本。
    - 标记不同且当前版本带有 "!"：发送发布说明，然后保存新标记。
    """

    def __init__(
        self,
        channel: BaseChannel,
        config: Config,
        save: Callable[[Config], None],
        version: str = RELEASE_VERSION,
    ):
        self.channel = channel
        self.config = config
        self.save = save
        self.version = version

    def format(self, version_code: str) -> str:
        return (
            f"<b>Telegram Sync {version_code}</b>\n\n"
            f"<u>New Features</u>{NEW_FEATURES}\n"
            f"<u>Bug Fixes</u>{BUG_FIXES}\n"
            f"<u>Possible Road Map</u>{POSSIBLE_ROADMAP}\n"
            "<b>If you like this project and are considering donating to support "
            "continued development, use the buttons below!</b>"
        )

    def keyboard(self) -> InlineKeyboardMarkup | None:
        links = self.config.release.donation_links
        if not links:
            return None
        buttons = [InlineKeyboardButton(link.text, url=link.url) for link in links]
        # 每行两个按钮
        return InlineKeyboardMarkup([buttons[i:i + 2] for i in range(0, len(buttons), 2)])

    def _persist(self, version_code: str) -> None:
        self.config.state.plugin_version = version_code
        self.save(self.config)

    async def check(self, chat_id: int) -> bool:
        """
        检查版本变化。

        返回:
            发送了发布说明时返回 True。
        """
        version_code = normalize_version(self.version)
        stored = self.config.state.plugin_version

        if not stored:
            logger.debug(f"首次运行，记录版本 {version_code}")
            self._persist(version_code)
            return False

        if stored == version_code or version_code == self.version:
            return False

        if self.config.release.notify:
            options = {"parse_mode": "HTML"}
            markup = self.keyboard()
            if markup:
                options["reply_markup"] = markup
            await self.channel.reply(chat_id, self.format(version_code), **options)
            logger.info(f"已发送 {version_code} 的发布说明")

        self._persist(version_code)
        return True
