"""无冲突的库路径分配。"""

import asyncio
from datetime import datetime
from typing import Callable, Protocol

from loguru import logger

from telesync.store.vault import join_path
from telesync.utils.helpers import date_string, safe_filename, time_string

# 重新采样得到相同候选路径时的等待时间（秒级时间戳需要时钟前进）
RESAMPLE_DELAY_S = 0.1

TITLE_LENGTH = 20


class ExistsChecker(Protocol):
    async def exists(self, path: str) -> bool: ...


class PathIndex:
    """
    进程范围内已分配路径的记录。

    只保存在内存中，从不删除条目（除非显式 clear）。
    锁保护整个"探测并插入"过程，而不仅仅是插入。
    """

    def __init__(self):
        self._paths: set[str] = set()
        self.lock = asyncio.Lock()

    def add(self, path: str) -> None:
        self._paths.add(path)

    def clear(self) -> None:
        self._paths.clear()

    def __contains__(self, path: object) -> bool:
        return path in self._paths

    def __len__(self) -> int:
        return len(self._paths)

    def __iter__(self):
        return iter(sorted(self._paths))


def note_title(raw: str, limit: int = TITLE_LENGTH) -> str:
    """由原始文本的前 limit 个字符得到笔记标题。"""
    return safe_filename(raw[:limit])


class PathAllocator:
    """
    为给定的基础名和时间生成唯一的库路径。

    同时检查已分配路径索引和库中真实存在的文件。
    """

    def __init__(
        self,
        store: ExistsChecker,
        index: PathIndex,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.store = store
        self.index = index
        self.clock = clock

    @staticmethod
    def compose(folder: str, base_name: str, day: str, time_part: str, extension: str) -> str:
        return join_path(folder, f"{base_name} - {day}{time_part}{extension}")

    async def allocate(
        self,
        folder: str,
        base_name: str,
        date: datetime,
        extension: str = ".md",
    ) -> str:
        """
        分配一个唯一路径：folder/base_name - 日期时间.ext。

        候选路径已被占用时，用当前时间重新计算时间部分，直到得到空闲路径。
        返回前路径已插入索引，即使之后写入失败也不会被重用。

        参数:
            folder: 目标文件夹（库内相对路径）。
            base_name: 已清理的基础名。
            date: 消息时间，决定日期部分和首个候选的时间部分。
            extension: 包含点的扩展名。

        返回:
            规范化后的库内路径。
        """
        day = date_string(date)
        candidate = self.compose(folder, base_name, day, time_string(date), extension)

        async with self.index.lock:
            while candidate in self.index or await self.store.exists(candidate):
                previous = candidate
                candidate = self.compose(
                    folder, base_name, day, time_string(self.clock()), extension
                )
                if candidate == previous:
                    await asyncio.sleep(RESAMPLE_DELAY_S)
            self.index.add(candidate)

        logger.debug(f"已分配路径 {candidate}")
        return candidate
