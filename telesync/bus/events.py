"""入站消息与摄取结果的事件类型。"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class FileType(str, Enum):
    """附件类型。顺序即检测顺序。"""

    PHOTO = "photo"
    VIDEO = "video"
    VOICE = "voice"
    AUDIO = "audio"
    ANIMATION = "animation"  # GIF 同时带有 document 字段，须先于 DOCUMENT 检测
    DOCUMENT = "document"
    STICKER = "sticker"
    VIDEO_NOTE = "video_note"


@dataclass(frozen=True)
class Attachment:
    """单个附件（或照片的一个分辨率变体）。"""

    file_type: FileType
    file_id: str  # 远程文件句柄
    file_unique_id: str
    file_size: int | None = None  # 字节数提示
    mime_type: str | None = None
    file_name: str | None = None


@dataclass(frozen=True)
class InboundMessage:
    """
    从 Telegram 接收的一条消息的不可变视图。

    attachments 保存唯一被填充的附件字段的全部变体（照片有多个尺寸，
    其他类型只有一个），按来源提供的顺序排列。
    """

    message_id: int
    chat_id: int
    date: int  # Unix 秒
    username: str | None = None
    text: str | None = None
    caption: str | None = None
    attachment_type: FileType | None = None
    attachments: tuple[Attachment, ...] = ()

    @property
    def timestamp(self) -> datetime:
        """消息时间（本地时区）。"""
        return datetime.fromtimestamp(self.date)

    @property
    def has_attachment(self) -> bool:
        return self.attachment_type is not None and bool(self.attachments)

    def select_variant(self) -> Attachment | None:
        """选择要下载的附件：有序变体中的最后一个（最高保真度）。"""
        if not self.attachments:
            return None
        return self.attachments[-1]


@dataclass
class IngestionResult:
    """FileIngestor 的结果。content_ref 总是被填充。"""

    content_ref: str
    stored_path: str | None = None
    error: BaseException | None = None
    file_name: str = ""

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class QueuedEntry:
    """批量追加模式下排队的条目。"""

    message: InboundMessage
    content: str
    error: BaseException | None = None
    queued_at: datetime = field(default_factory=datetime.now)
