"""单条笔记的写入。"""

from loguru import logger

from telesync.bus.events import InboundMessage
from telesync.config.schema import VaultConfig
from telesync.store.paths import PathAllocator, note_title
from telesync.store.vault import VaultStore


class NoteWriter:
    """以 "标题 - 日期时间.md" 的名称在笔记文件夹中创建笔记。"""

    def __init__(self, store: VaultStore, allocator: PathAllocator, config: VaultConfig):
        self.store = store
        self.allocator = allocator
        self.config = config

    async def write(self, message: InboundMessage, title_source: str, content: str) -> str:
        """
        创建一条新笔记。

        参数:
            message: 来源消息，其时间决定文件名中的日期时间。
            title_source: 用于生成标题的原始文本（取前 20 个字符）。
            content: 笔记内容。

        返回:
            笔记在库中的路径。
        """
        location = self.config.notes_location
        await self.store.ensure_folder(location)
        path = await self.allocator.allocate(
            location, note_title(title_source), message.timestamp
        )
        await self.store.create_text(path, content)
        logger.info(f"已创建笔记 {path}")
        return path
