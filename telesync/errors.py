"""telesync 的异常类型。"""


class TelesyncError(Exception):
    """所有 telesync 异常的基类。"""


class AuthorizationDenied(TelesyncError):
    """发送者不在允许列表中。"""

    def __init__(self, handle: str | None):
        self.handle = handle or ""
        super().__init__(f"用户 {self.handle or '<未知>'} 不在允许列表中")


class NoAttachmentError(TelesyncError):
    """消息中没有可识别的附件。"""

    def __init__(self, message: str = "Can't get file object from the message!"):
        super().__init__(message)


class TransportError(TelesyncError):
    """文件传输错误的基类。"""


class TransportTooLarge(TransportError):
    """主传输拒绝下载：文件超过大小上限。"""


class TransportFailure(TransportError):
    """任何其他传输错误，对当前消息是永久性的。"""


class StoreWriteFailure(TelesyncError):
    """写入笔记库失败。"""

    def __init__(self, path: str, reason: str):
        self.path = path
        super().__init__(f"无法写入 {path}：{reason}")
