"""本地笔记库（Obsidian 风格的文件夹树）存储。"""

import asyncio
import posixpath
from pathlib import Path

from loguru import logger

from telesync.errors import StoreWriteFailure


def normalize_path(path: str) -> str:
    """
    规范化库内相对路径。

    反斜杠转为正斜杠，折叠重复的斜杠，去掉首尾斜杠。
    空路径表示库根目录。
    """
    path = path.replace("\\", "/")
    parts = [p for p in path.split("/") if p and p != "."]
    return "/".join(parts)


def join_path(folder: str, name: str) -> str:
    """连接文件夹和文件名，folder 为空时直接返回 name。"""
    return normalize_path(posixpath.join(folder, name) if folder else name)


def _write_new(target: Path, data: bytes) -> None:
    target.parent.mkdir(parents=True, exist_ok=True)
    with open(target, "xb") as f:
        f.write(data)


def _append(target: Path, content: str) -> None:
    target.parent.mkdir(parents=True, exist_ok=True)
    with open(target, "a", encoding="utf-8") as f:
        f.write(content)


class VaultStore:
    """
    以本地目录为根的文档存储。

    所有路径都是相对于库根目录的 POSIX 风格路径。方法都是异步的，
    每次调用都是一个挂起点。
    """

    def __init__(self, root: Path):
        self.root = Path(root).expanduser()

    def _resolve(self, path: str) -> Path:
        rel = normalize_path(path)
        if ".." in rel.split("/"):
            raise StoreWriteFailure(path, "路径不能离开库根目录")
        return self.root / rel if rel else self.root

    async def ensure_folder(self, path: str) -> None:
        """创建文件夹（幂等）。"""
        folder = self._resolve(path)
        if folder.is_dir():
            return
        try:
            folder.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StoreWriteFailure(path, str(e)) from e
        logger.debug(f"已创建文件夹 {folder}")

    async def exists(self, path: str) -> bool:
        """检查路径是否已作为文件存在。"""
        return self._resolve(path).is_file()

    async def create_text(self, path: str, content: str) -> str:
        """创建新的文本笔记。文件已存在时失败。"""
        return await self._create(path, content.encode("utf-8"))

    async def create_binary(self, path: str, data: bytes) -> str:
        """创建新的二进制文件。文件已存在时失败。"""
        return await self._create(path, bytes(data))

    async def _create(self, path: str, data: bytes) -> str:
        target = self._resolve(path)
        try:
            await asyncio.to_thread(_write_new, target, data)
        except FileExistsError as e:
            raise StoreWriteFailure(path, "文件已存在") from e
        except OSError as e:
            raise StoreWriteFailure(path, str(e)) from e
        logger.debug(f"已写入 {target}（{len(data)} 字节）")
        return normalize_path(path)

    async def append_text(self, path: str, content: str) -> None:
        """追加文本到笔记末尾，笔记不存在时创建。"""
        target = self._resolve(path)
        try:
            await asyncio.to_thread(_append, target, content)
        except OSError as e:
            raise StoreWriteFailure(path, str(e)) from e

    async def read_text(self, path: str) -> str:
        """读取笔记内容。"""
        return self._resolve(path).read_text(encoding="utf-8")
