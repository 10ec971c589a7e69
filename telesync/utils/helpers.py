"""telesync 的实用工具函数。"""

import re
from datetime import datetime
from pathlib import Path


def ensure_dir(path: Path) -> Path:
    """确保目录存在，必要时创建它。"""
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_path() -> Path:
    """获取 telesync 数据目录（~/.telesync）。"""
    return ensure_dir(Path.home() / ".telesync")


def date_string(dt: datetime) -> str:
    """日期部分，格式为 YYYYMMDD。"""
    return dt.strftime("%Y%m%d")


def time_string(dt: datetime) -> str:
    """时间部分，格式为 HHMMSS。"""
    return dt.strftime("%H%M%S")


_UNSAFE_CHARS = re.compile(r'[<>:"/\\|?*#^\[\]\x00-\x1f]')


def safe_filename(name: str) -> str:
    """将字符串转换为安全的文件名。"""
    # 先把换行等空白折叠为单个空格，再替换剩下的不安全字符
    name = re.sub(r"\s+", " ", name)
    name = _UNSAFE_CHARS.sub("_", name)
    return name.strip()


def format_bytes(size: int | None) -> str:
    """将字节数格式化为人类可读的大小。"""
    if size is None:
        return "未知大小"
    value = float(size)
    for unit in ("B", "KB", "MB", "GB"):
        if value < 1024 or unit == "GB":
            return f"{value:.0f} {unit}" if unit == "B" else f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} GB"
