"""附件的下载与保存。"""

import mimetypes
import posixpath
import re

from loguru import logger

from telesync.bus.events import Attachment, FileType, IngestionResult, InboundMessage
from telesync.bus.queue import MessageQueue
from telesync.channels.base import BaseChannel
from telesync.config.schema import VaultConfig
from telesync.errors import NoAttachmentError, TransportFailure, TransportTooLarge
from telesync.ingest.notes import NoteWriter
from telesync.ingest.progress import ProgressReporter
from telesync.ingest.templates import TemplateRenderer
from telesync.store.paths import PathAllocator
from telesync.store.vault import VaultStore, join_path
from telesync.transport.base import FallbackTransport, FileTransport
from telesync.utils.helpers import safe_filename

ERROR_MARKER = "[❌ error while handling file]"


def error_ref(error: BaseException) -> str:
    return f"{ERROR_MARKER}({error})"


def success_ref(display_name: str, path: str) -> str:
    encoded = re.sub(r"\s", "%20", path)
    return f"![{display_name}]({encoded})"


def provisional_name(link: str, file_type: FileType) -> str:
    """由下载链接得到临时文件名，例如 .../photos/file_3.jpg -> photo_3.jpg。"""
    name = link.rstrip("/").split("/")[-1]
    return name.replace("file", file_type.value, 1)


def resolve_extension(display_name: str, mime_type: str | None) -> str:
    """优先使用文件名中的扩展名，否则由 MIME 类型推断。"""
    ext = posixpath.splitext(display_name)[1]
    if ext:
        return ext
    if mime_type:
        return mimetypes.guess_extension(mime_type) or ""
    return ""


class FileIngestor:
    """
    把消息中的附件保存到库中。

    流程：识别附件，选择变体，通过主传输流式下载（显示进度），
    主传输报告文件过大时改用次要传输，然后分配唯一路径并写入。
    所有错误都被捕获并折叠进 IngestionResult。
    """

    def __init__(
        self,
        channel: BaseChannel | None,
        store: VaultStore,
        allocator: PathAllocator,
        transport: FileTransport,
        fallback: FallbackTransport | None,
        renderer: TemplateRenderer,
        queue: MessageQueue,
        config: VaultConfig,
        progress: ProgressReporter | None = None,
    ):
        self.channel = channel
        self.store = store
        self.allocator = allocator
        self.transport = transport
        self.fallback = fallback
        self.renderer = renderer
        self.queue = queue
        self.config = config
        self.progress = progress or ProgressReporter(channel)
        self.notes = NoteWriter(store, allocator, config)

    @staticmethod
    def classify(message: InboundMessage) -> tuple[FileType, Attachment]:
        """返回附件类型和要下载的变体。"""
        attachment = message.select_variant()
        if message.attachment_type is None or attachment is None:
            raise NoAttachmentError()
        return message.attachment_type, attachment

    async def ingest(self, message: InboundMessage) -> IngestionResult:
        """
        下载并保存消息的附件。

        返回:
            content_ref 总是被填充：成功时是 Markdown 嵌入链接，失败时是错误标记。
        """
        base_path = self.config.files_folder
        stamp = message.timestamp
        display_name = ""

        try:
            await self.store.ensure_folder(base_path)
            file_type, attachment = self.classify(message)
            try:
                link = await self.transport.resolve_link(attachment.file_id)
                # 下载前就记下临时名称，流中断时错误笔记仍有标题
                display_name = provisional_name(link, file_type)
                data = await self._stream(message, attachment)
            except TransportTooLarge as e:
                display_name = f"{file_type.value}_{safe_filename(attachment.file_unique_id)}"
                data = await self._fetch_fallback(attachment, e)

            if file_type is FileType.DOCUMENT and attachment.file_name:
                display_name = attachment.file_name
            ext = resolve_extension(display_name, attachment.mime_type)
            stem = display_name[: -len(ext)] if ext and display_name.endswith(ext) else display_name

            # 每种文件类型一个子文件夹
            folder = join_path(base_path, f"{file_type.value}s")
            await self.store.ensure_folder(folder)
            path = await self.allocator.allocate(folder, safe_filename(stem), stamp, ext)
            await self.store.create_binary(path, data)
        except Exception as e:
            logger.error(f"处理消息 {message.message_id} 的文件失败：{e}")
            return IngestionResult(content_ref=error_ref(e), error=e, file_name=display_name)

        logger.info(f"已保存 {file_type.value} 到 {path}")
        return IngestionResult(
            content_ref=success_ref(display_name, path),
            stored_path=path,
            file_name=display_name,
        )

    async def _fetch_fallback(self, attachment: Attachment, cause: TransportTooLarge) -> bytes:
        logger.info(f"文件 {attachment.file_id} 过大（{cause}），改用次要传输")
        if self.fallback is None:
            raise TransportFailure("文件过大，且没有可用的次要传输") from cause
        return await self.fallback.fetch_all(attachment.file_id, attachment.file_size)

    async def _stream(self, message: InboundMessage, attachment: Attachment) -> bytes:
        handle = await self.progress.start(message.chat_id, message.message_id, "downloading")
        buffer = bytearray()
        stage = 0
        try:
            async for chunk in self.transport.open_stream(attachment.file_id):
                buffer.extend(chunk)
                stage = await self.progress.update(handle, attachment.file_size, len(buffer), stage)
        finally:
            await self.progress.stop(handle)
        return bytes(buffer)

    async def process(self, message: InboundMessage) -> IngestionResult:
        """
        完整处理一条带附件的消息：保存文件，组成笔记，最后确认消息。

        只设置了文件保存（既没有追加模式也没有模板）时不生成笔记。
        """
        result = await self.ingest(message)
        error = result.error

        try:
            if self.config.append_to_note or self.config.template_file:
                content = await self.renderer.render(
                    self.config.template_file, message, result.content_ref
                )
                if self.config.append_to_note:
                    self.queue.enqueue(message, content, error)
                elif message.caption or result.file_name:
                    await self.notes.write(message, message.caption or result.file_name, content)
        except Exception as e:
            logger.error(f"为消息 {message.message_id} 创建笔记失败：{e}")
            error = error or e

        await self.finalize(message, error)
        return result

    async def finalize(self, message: InboundMessage, error: BaseException | None) -> None:
        if self.channel is None:
            return
        try:
            await self.channel.mark_processed(message, error)
        except Exception as e:
            logger.error(f"确认消息 {message.message_id} 失败：{e}")
