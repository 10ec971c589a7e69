"""telesync 的 CLI 命令。"""

import asyncio
import sys
from pathlib import Path

import typer
from loguru import logger
from rich.console import Console
from rich.table import Table

from telesync import __logo__, __version__

app = typer.Typer(
    name="telesync",
    help=f"{__logo__} telesync - 把 Telegram 消息保存到笔记库",
    no_args_is_help=True,
)

console = Console()


def version_callback(value: bool):
    if value:
        console.print(f"{__logo__} telesync v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None, "--version", "-v", callback=version_callback, is_eager=True
    ),
):
    """telesync - 把 Telegram 消息保存到笔记库。"""
    pass


# ============================================================================
# 入门 / 设置
# ============================================================================


@app.command()
def onboard(
    config_file: Path = typer.Option(None, "--config", "-c", help="配置文件路径"),
):
    """初始化 telesync 配置和笔记库。"""
    from telesync.config.loader import get_config_path, save_config
    from telesync.config.schema import Config
    from telesync.utils.helpers import ensure_dir

    config_path = config_file or get_config_path()

    if config_path.exists():
        console.print(f"[yellow]配置已存在于 {config_path}[/yellow]")
        if not typer.confirm("覆盖？"):
            raise typer.Exit()

    config = Config()
    save_config(config, config_path)
    console.print(f"[green]✓[/green] 已在 {config_path} 创建配置")

    vault = ensure_dir(config.vault_path)
    console.print(f"[green]✓[/green] 已在 {vault} 创建笔记库")

    console.print(f"\n{__logo__} telesync 已准备就绪！")
    console.print("\n下一步：")
    console.print(f"  1. 将机器人令牌添加到 [cyan]{config_path}[/cyan] 的 telegram.token")
    console.print("  2. 将你的用户名添加到 telegram.allowFrom")
    console.print("  3. 运行：[cyan]telesync run[/cyan]")


# ============================================================================
# 运行
# ============================================================================


@app.command()
def run(
    config_file: Path = typer.Option(None, "--config", "-c", help="配置文件路径"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="详细输出"),
):
    """启动机器人并开始同步消息。"""
    from telesync.append.service import AppendService
    from telesync.bus.queue import MessageQueue
    from telesync.channels.telegram import TelegramChannel
    from telesync.config.loader import get_config_path, load_config, save_config
    from telesync.ingest.files import FileIngestor
    from telesync.ingest.release import ReleaseNotice
    from telesync.ingest.router import MessageRouter
    from telesync.ingest.templates import TemplateRenderer
    from telesync.store.paths import PathAllocator, PathIndex
    from telesync.store.vault import VaultStore
    from telesync.transport.telegram import BotApiTransport, LocalBotApiTransport

    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "INFO")

    config_path = config_file or get_config_path()
    config = load_config(config_path)

    if not config.telegram.token:
        console.print("[red]错误：未配置机器人令牌。[/red]")
        console.print(f"在 {config_path} 的 telegram.token 下设置")
        raise typer.Exit(1)

    if not config.telegram.allow_from:
        console.print("[yellow]警告：允许列表为空，所有消息都会被拒绝[/yellow]")

    # 创建组件
    store = VaultStore(config.vault_path)
    index = PathIndex()
    allocator = PathAllocator(store, index)
    queue = MessageQueue()
    renderer = TemplateRenderer(store)

    channel = TelegramChannel(config.telegram)
    telegram_app = channel.build()
    transport = BotApiTransport(
        telegram_app.bot,
        chunk_size=config.telegram.chunk_size,
        proxy=config.telegram.proxy,
    )
    fallback = LocalBotApiTransport(config.telegram.token, config.telegram.local_api_url)

    ingestor = FileIngestor(
        channel=channel,
        store=store,
        allocator=allocator,
        transport=transport,
        fallback=fallback,
        renderer=renderer,
        queue=queue,
        config=config.vault,
    )
    release = ReleaseNotice(channel, config, lambda c: save_config(c, config_path))
    router = MessageRouter(
        channel=channel,
        ingestor=ingestor,
        renderer=renderer,
        queue=queue,
        config=config.vault,
        release=release,
    )
    channel.on_message = router.route

    appender = AppendService(
        store,
        queue,
        target=config.vault.append_note_path,
        interval_s=config.vault.append_interval_s,
        enabled=config.vault.append_to_note,
    )

    console.print(f"{__logo__} 正在同步到 [cyan]{config.vault_path}[/cyan]")
    if config.vault.append_to_note:
        console.print(f"[green]✓[/green] 批量追加：{config.vault.append_note_path}")
    if not config.telegram.local_api_url:
        console.print("[dim]未配置本地 Bot API 服务器，超过 20 MB 的文件将无法下载[/dim]")

    async def main_loop():
        await appender.start()
        try:
            await channel.start()
        finally:
            console.print("\n正在关闭...")
            await channel.stop()
            await fallback.close()
            try:
                await appender.stop()
            except Exception as e:
                logger.error(f"写入剩余的排队消息失败：{e}")

    try:
        asyncio.run(main_loop())
    except KeyboardInterrupt:
        pass


# ============================================================================
# 状态
# ============================================================================


@app.command()
def status(
    config_file: Path = typer.Option(None, "--config", "-c", help="配置文件路径"),
):
    """显示 telesync 状态。"""
    from telesync.config.loader import get_config_path, load_config

    config_path = config_file or get_config_path()
    config = load_config(config_path)

    console.print(f"{__logo__} telesync 状态\n")
    console.print(
        f"配置：{config_path} {'[green]✓[/green]' if config_path.exists() else '[red]✗[/red]'}"
    )
    console.print(
        f"笔记库：{config.vault_path} "
        f"{'[green]✓[/green]' if config.vault_path.exists() else '[red]✗[/red]'}"
    )

    table = Table(title="设置")
    table.add_column("设置", style="cyan")
    table.add_column("值")

    table.add_row("机器人令牌", "[green]✓[/green]" if config.telegram.token else "[dim]未设置[/dim]")
    table.add_row("允许的用户", ", ".join(config.telegram.allow_from) or "[dim]无[/dim]")
    table.add_row("本地 Bot API", config.telegram.local_api_url or "[dim]未设置[/dim]")
    table.add_row("笔记位置", config.vault.notes_location or "/")
    table.add_row("文件位置", config.vault.files_folder or "/")
    table.add_row("模板", config.vault.template_file or "[dim]无[/dim]")
    table.add_row("批量追加", config.vault.append_note_path if config.vault.append_to_note else "关闭")
    table.add_row("删除已处理消息", "是" if config.telegram.delete_messages else "否")
    table.add_row("版本标记", config.state.plugin_version or "[dim]无[/dim]")

    console.print(table)


if __name__ == "__main__":
    app()
