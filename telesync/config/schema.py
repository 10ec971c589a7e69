"""使用 Pydantic 的配置模式定义。"""

from pathlib import Path

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings


class TelegramConfig(BaseModel):
    """Telegram 频道配置。"""
    token: str = ""  # 从 @BotFather 获取的机器人令牌
    allow_from: list[str] = Field(default_factory=list)  # 允许的用户名
    proxy: str | None = None  # HTTP/SOCKS5 代理 URL，例如 "socks5://127.0.0.1:1080"
    local_api_url: str | None = None  # 自建 Bot API 服务器，用于下载超过 20 MB 的文件
    chunk_size: int = 64 * 1024  # 流式下载的块大小
    delete_messages: bool = False  # 处理成功后从 Telegram 删除消息，否则添加 👍 反应


class VaultConfig(BaseModel):
    """笔记库配置。"""
    root: str = "~/.telesync/vault"
    notes_location: str = ""  # 新笔记所在文件夹（相对于库根目录）
    files_location: str = ""  # 新文件所在文件夹，为空时使用 notes_location
    template_file: str = ""  # 笔记内容模板（库内路径）
    append_to_note: bool = False  # 批量追加模式：所有消息追加到同一个笔记
    append_note_path: str = "Telegram.md"
    append_interval_s: int = 10

    @property
    def files_folder(self) -> str:
        return self.files_location or self.notes_location


class DonationLink(BaseModel):
    """发布说明下方的捐赠按钮。"""
    text: str
    url: str


class ReleaseConfig(BaseModel):
    """发布说明配置。"""
    notify: bool = True
    donation_links: list[DonationLink] = Field(default_factory=list)


class StateConfig(BaseModel):
    """运行时持久化的状态。"""
    plugin_version: str = ""  # 上次运行的版本标记


class Config(BaseSettings):
    """telesync 的根配置。"""
    telegram: TelegramConfig = Field(default_factory=TelegramConfig)
    vault: VaultConfig = Field(default_factory=VaultConfig)
    release: ReleaseConfig = Field(default_factory=ReleaseConfig)
    state: StateConfig = Field(default_factory=StateConfig)

    @property
    def vault_path(self) -> Path:
        """获取展开后的库路径。"""
        return Path(self.vault.root).expanduser()

    class Config:
        env_prefix = "TELESYNC_"
        env_nested_delimiter = "__"
