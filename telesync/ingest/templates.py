"""笔记内容模板渲染。"""

import re

from loguru import logger

from telesync.bus.events import InboundMessage
from telesync.store.vault import VaultStore

_PLACEHOLDER = re.compile(r"\{\{(\w+)(?::([^}]*))?\}\}")

DEFAULT_DATE_FORMAT = "%Y%m%d"
DEFAULT_TIME_FORMAT = "%H%M%S"


def default_body(message: InboundMessage, content_ref: str | None = None) -> str:
    """没有模板时的笔记内容：正文（或说明文字），然后是附件引用。"""
    parts = [p for p in (message.text or message.caption, content_ref) if p]
    return "\n".join(parts)


class TemplateRenderer:
    """
    用库中的模板文件渲染笔记内容。

    支持的占位符：
    - {{content}}   消息正文和附件引用
    - {{text}}      仅消息正文（或说明文字）
    - {{files}}     仅附件引用
    - {{messageDate:FMT}} / {{messageTime:FMT}}  strftime 格式的消息时间
    - {{user}} / {{chat}}
    """

    def __init__(self, store: VaultStore):
        self.store = store

    async def render(
        self,
        template_path: str,
        message: InboundMessage,
        content_ref: str | None = None,
    ) -> str:
        if not template_path:
            return default_body(message, content_ref)

        if not await self.store.exists(template_path):
            logger.warning(f"模板 {template_path} 不存在，使用默认内容")
            return default_body(message, content_ref)

        template = await self.store.read_text(template_path)
        return self.apply(template, message, content_ref)

    def apply(self, template: str, message: InboundMessage, content_ref: str | None = None) -> str:
        stamp = message.timestamp

        def substitute(m: re.Match) -> str:
            name, arg = m.group(1), m.group(2)
            if name == "content":
                return default_body(message, content_ref)
            if name == "text":
                return message.text or message.caption or ""
            if name == "files":
                return content_ref or ""
            if name == "messageDate":
                return stamp.strftime(arg or DEFAULT_DATE_FORMAT)
            if name == "messageTime":
                return stamp.strftime(arg or DEFAULT_TIME_FORMAT)
            if name == "user":
                return f"@{message.username}" if message.username else ""
            if name == "chat":
                return str(message.chat_id)
            # 未知占位符原样保留
            return m.group(0)

        return _PLACEHOLDER.sub(substitute, template)
