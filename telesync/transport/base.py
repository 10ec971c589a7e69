"""文件传输的抽象接口。"""

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator


class FileTransport(ABC):
    """
    主传输：为远程文件句柄解析下载链接并以字节流方式读取。

    超过传输自身的大小上限时抛出 TransportTooLarge，
    其他错误抛出 TransportFailure。
    """

    @abstractmethod
    async def resolve_link(self, file_id: str) -> str:
        """返回远程文件的可下载链接。"""
        pass

    @abstractmethod
    def open_stream(self, file_id: str) -> AsyncIterator[bytes]:
        """打开远程文件的字节流，逐块产出。"""
        pass


class FallbackTransport(ABC):
    """次要传输：主传输拒绝过大的文件时，一次性获取全部字节。"""

    @abstractmethod
    async def fetch_all(self, file_id: str, size_hint: int | None) -> bytes:
        """
        下载整个文件。

        参数:
            file_id: 远程文件句柄。
            size_hint: 声明的字节数（可能缺失）。

        返回:
            文件的全部字节。
        """
        pass
