"""配置文件的加载与保存。"""

import json
import re
from pathlib import Path
from typing import Any

from loguru import logger
from pydantic import ValidationError

from telesync.config.schema import Config
from telesync.utils.helpers import get_data_path


def get_data_dir() -> Path:
    """获取 telesync 数据目录。"""
    return get_data_path()


def get_config_path() -> Path:
    """获取默认配置文件路径。"""
    return get_data_dir() / "config.json"


def camel_to_snake(name: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()


def snake_to_camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(word.capitalize() for word in rest)


def convert_keys(data: Any, convert) -> Any:
    """递归转换字典的键。"""
    if isinstance(data, dict):
        return {convert(k): convert_keys(v, convert) for k, v in data.items()}
    if isinstance(data, list):
        return [convert_keys(item, convert) for item in data]
    return data


def load_config(config_path: Path | None = None) -> Config:
    """
    从文件加载配置，文件不存在或无效时使用默认值。

    参数:
        config_path: 可选的配置文件路径。默认为 ~/.telesync/config.json。

    返回:
        加载的配置对象。
    """
    path = config_path or get_config_path()

    if path.exists():
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
            return Config.model_validate(convert_keys(data, camel_to_snake))
        except (json.JSONDecodeError, ValidationError) as e:
            logger.warning(f"从 {path} 加载配置失败：{e}")
            logger.warning("使用默认配置。")

    return Config()


def save_config(config: Config, config_path: Path | None = None) -> None:
    """
    将配置保存到文件（键名使用 camelCase）。

    参数:
        config: 要保存的配置。
        config_path: 可选的保存路径。默认为 ~/.telesync/config.json。
    """
    path = config_path or get_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)

    data = convert_keys(config.model_dump(), snake_to_camel)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)
