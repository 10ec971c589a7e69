"""telesync - 将 Telegram 消息同步为笔记库中的笔记和文件。"""

__version__ = "1.2.0"
__logo__ = "📥"
