"""基于 python-telegram-bot 和 httpx 的 Telegram 文件传输。"""

from collections.abc import AsyncIterator

import httpx
from loguru import logger
from telegram import Bot
from telegram.error import BadRequest, TelegramError

from telesync.errors import TransportFailure, TransportTooLarge
from telesync.transport.base import FallbackTransport, FileTransport

# 云端 Bot API 的 getFile 上限
BOT_API_MAX_BYTES = 20 * 1024 * 1024
DEFAULT_CHUNK_SIZE = 64 * 1024

_TOO_BIG_MARKER = "file is too big"


def _translate(e: TelegramError) -> Exception:
    """将 Bot API 错误转换为类型化的传输错误。"""
    if isinstance(e, BadRequest) and _TOO_BIG_MARKER in str(e).lower():
        return TransportTooLarge(str(e))
    return TransportFailure(str(e))


class BotApiTransport(FileTransport):
    """
    通过云端 Bot API 下载文件。

    getFile 解析下载链接，httpx 以流的方式读取内容。
    """

    def __init__(
        self,
        bot: Bot,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        timeout: float = 60.0,
        proxy: str | None = None,
        http_transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.bot = bot
        self.chunk_size = chunk_size
        self.timeout = timeout
        self.proxy = proxy or None
        self.http_transport = http_transport
        self._links: dict[str, str] = {}

    async def resolve_link(self, file_id: str) -> str:
        if file_id in self._links:
            return self._links[file_id]
        try:
            file = await self.bot.get_file(file_id)
        except TelegramError as e:
            raise _translate(e) from e
        if not file.file_path:
            raise TransportFailure(f"文件 {file_id} 没有可下载的路径")
        self._links[file_id] = file.file_path
        return file.file_path

    async def open_stream(self, file_id: str) -> AsyncIterator[bytes]:
        url = await self.resolve_link(file_id)
        self._links.pop(file_id, None)
        try:
            async with self._client() as client:
                async with client.stream("GET", url) as resp:
                    resp.raise_for_status()
                    async for chunk in resp.aiter_bytes(self.chunk_size):
                        yield chunk
        except httpx.HTTPStatusError as e:
            raise TransportFailure(
                f"下载 {file_id} 失败：HTTP {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            # 错误文本里带有包含令牌的下载地址，只报告错误类型
            raise TransportFailure(f"下载 {file_id} 失败：{type(e).__name__}") from e

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.timeout, proxy=self.proxy, transport=self.http_transport
        )


class LocalBotApiTransport(FallbackTransport):
    """
    通过自建的 Telegram Bot API 服务器下载大文件。

    本地服务器没有 20 MB 的限制。未配置服务器地址时每次调用都失败。
    """

    def __init__(self, token: str, api_url: str | None):
        self.token = token
        self.api_url = api_url.rstrip("/") if api_url else None
        self._bot: Bot | None = None

    async def _get_bot(self) -> Bot:
        if self._bot is None:
            bot = Bot(
                token=self.token,
                base_url=f"{self.api_url}/bot",
                base_file_url=f"{self.api_url}/file/bot",
                local_mode=True,
            )
            await bot.initialize()
            self._bot = bot
        return self._bot

    async def fetch_all(self, file_id: str, size_hint: int | None) -> bytes:
        if not self.api_url:
            raise TransportFailure("文件过大，且未配置本地 Bot API 服务器（telegram.localApiUrl）")

        logger.info(f"通过本地 Bot API 下载大文件 {file_id}（{size_hint} 字节）")
        try:
            bot = await self._get_bot()
            file = await bot.get_file(file_id)
            data = bytes(await file.download_as_bytearray())
        except TelegramError as e:
            raise TransportFailure(str(e)) from e
        except OSError as e:
            raise TransportFailure(f"读取本地文件失败：{e}") from e

        if size_hint and len(data) != size_hint:
            logger.warning(f"文件 {file_id} 大小不符：声明 {size_hint}，实际 {len(data)}")
        return data

    async def close(self) -> None:
        if self._bot:
            await self._bot.shutdown()
            self._bot = None
