import asyncio
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.text import Text

from folio.config.logic import load_and_merge_configs
from folio.config.models import Config, SessionCredentials
from folio.config.settings import SettingsStore
from folio.core.contracts.models import ChatMessage, Documents
from folio.core.render.renderer import SiteRenderer
from folio.core.session import AdminSession
from folio.core.store import DocumentStore
from folio.core.workflow import AppState, WorkflowStatus
from folio.utils.errors import FolioException, RenderError
from folio.utils.logger import setup_logger, logger

ROLE_STYLES = {
    "user": ("User", "bold white"),
    "assistant": ("AI", "bold magenta"),
    "system": ("System", "yellow"),
}

ADMIN_HELP = """[bold]/diff[/bold]          显示待提交的修改
[bold]/commit[/bold]        提交待提交的修改
[bold]/render[/bold] [FILE] 渲染页面到文件
[bold]/reload[/bold]        重新加载文档
[bold]/quit[/bold]          退出"""


def _load_config(ctx: click.Context, origin: Optional[str] = None) -> Config:
    config = load_and_merge_configs(custom_config_path=ctx.obj.get("config_path"))
    if origin:
        config.content.origin = origin
        logger.info(f"使用 origin 覆盖配置: {origin}")
    return config


def _renderer(config: Config) -> SiteRenderer:
    return SiteRenderer(template_dir=config.render.template_dir, template_name=config.render.template)


def write_page(renderer: SiteRenderer, documents: Optional[Documents], output: str) -> Path:
    if documents is None:
        raise RenderError("Documents are not loaded.")
    html = renderer.render(documents.profile, documents.services, documents.portfolio)
    path = Path(output)
    path.write_text(html, encoding="utf-8")
    return path


def print_message(console: Console, message: ChatMessage) -> None:
    label, style = ROLE_STYLES[message.role]
    console.print(f"[{style}]{label}:[/{style}] ", end="")
    console.print(message.content, markup=False, highlight=False)


@click.group()
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="启用详细日志记录以进行调试",
)
@click.option(
    "-c", "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    help="自定义配置文件的路径",
)
@click.pass_context
def cli(ctx, verbose: bool, config_path: Optional[str]):
    """
    个人站点渲染与 AI 辅助编辑工具。
    """
    setup_logger(log_level="DEBUG" if verbose else "WARNING", log_file="folio.log" if verbose else None)
    ctx.obj = {"verbose": verbose, "config_path": config_path}


@cli.command("render")
@click.option("--origin", type=str, help="覆盖文档来源 (例如 'https://me.github.io/site')")
@click.option("-o", "--output", type=click.Path(dir_okay=False), help="输出的 HTML 文件")
@click.pass_context
def render(ctx, origin: Optional[str], output: Optional[str]):
    """
    加载文档并渲染页面。
    """
    console = Console()
    verbose = ctx.obj.get("verbose", False)
    try:
        config = _load_config(ctx, origin)
        store = DocumentStore(config.content)
        with console.status("[bold green]正在加载文档...[/bold green]"):
            documents = asyncio.run(store.load_all())
        path = write_page(_renderer(config), documents, output or config.render.output)
        console.print(f"[bold green]✅ 页面已生成:[/bold green] {path}")
    except FolioException as e:
        logger.opt(exception=verbose).error(f"发生已知错误: {e}")
        console.print(f"[bold red]错误:[/bold red] {e}")
        ctx.exit(1)


@cli.command("settings")
@click.option("--hosting-token", type=str, help="GitHub token")
@click.option("--assistant-key", type=str, help="OpenAI API key")
@click.option("--owner", "repo_owner", type=str, help="仓库所有者")
@click.option("--repo", "repo_name", type=str, help="仓库名称")
@click.pass_context
def settings(ctx, hosting_token: Optional[str], assistant_key: Optional[str], repo_owner: Optional[str], repo_name: Optional[str]):
    """
    保存或查看凭据。只保存非空的值。
    """
    console = Console()
    try:
        config = _load_config(ctx)
        store = SettingsStore(config.settings.path)
        updates = SessionCredentials(
            hosting_token=hosting_token,
            assistant_key=assistant_key,
            repo_owner=repo_owner,
            repo_name=repo_name,
        )
        if any(value for value in updates.model_dump().values()):
            store.save(updates)
            console.print("[bold green]✅ 设置已保存![/bold green]")
        for field, present in store.describe().items():
            mark = "[green]✔[/green]" if present else "[red]✘[/red]"
            console.print(f"{mark} {field}")
    except FolioException as e:
        console.print(f"[bold red]错误:[/bold red] {e}")
        ctx.exit(1)


async def run_admin(session: AdminSession, renderer: SiteRenderer, console: Console, output: str) -> None:
    printed = 0
    shown_proposal = None

    def on_state(state: AppState) -> None:
        nonlocal printed, shown_proposal
        for message in state.transcript[printed:]:
            print_message(console, message)
        printed = len(state.transcript)
        if state.status is WorkflowStatus.PROPOSED and state.pending is not shown_proposal:
            shown_proposal = state.pending
            console.print(Panel(
                Text(renderer.render_proposal(state.pending)),
                title="[bold cyan]待提交的修改[/bold cyan]",
                border_style="cyan",
                expand=False,
            ))
            console.print("[dim]输入 /commit 提交，或继续对话以放弃此修改。[/dim]")

    def on_alert(message: str) -> None:
        console.print(Panel(Text(message), border_style="bold red" if "Failed" in message else "bold green", expand=False))

    session.subscribe(on_state=on_state, on_alert=on_alert)

    with console.status("[bold green]正在加载文档...[/bold green]"):
        await session.reload()
    console.print(ADMIN_HELP)

    while True:
        try:
            line = (await asyncio.to_thread(console.input, "[bold cyan]> [/bold cyan]")).strip()
        except (EOFError, KeyboardInterrupt):
            break
        if not line:
            continue

        command, _, argument = line.partition(" ")
        try:
            if command in ("/quit", "/exit"):
                break
            elif command == "/help":
                console.print(ADMIN_HELP)
            elif command == "/diff":
                if session.state.pending is None:
                    console.print("[yellow]没有待提交的修改。[/yellow]")
                else:
                    console.print(renderer.render_proposal(session.state.pending), markup=False)
            elif command == "/commit":
                with console.status("[bold green]Committing...[/bold green]"):
                    await session.commit()
            elif command == "/reload":
                with console.status("[bold green]正在加载文档...[/bold green]"):
                    await session.reload()
            elif command == "/render":
                path = write_page(renderer, session.state.documents, argument.strip() or output)
                console.print(f"[bold green]✅ 页面已生成:[/bold green] {path}")
            else:
                with console.status("[bold green]Thinking...[/bold green]"):
                    await session.send(line)
        except FolioException as e:
            console.print(f"[bold red]错误:[/bold red] {e}")


@cli.command("admin")
@click.option("--origin", type=str, help="覆盖文档来源")
@click.pass_context
def admin(ctx, origin: Optional[str]):
    """
    与 AI 助手对话以修改并提交站点文档。
    """
    console = Console()
    verbose = ctx.obj.get("verbose", False)
    try:
        config = _load_config(ctx, origin)
        store = SettingsStore(config.settings.path)
        session = AdminSession(config, load_credentials=store.load)
        asyncio.run(run_admin(session, _renderer(config), console, config.render.output))
    except FolioException as e:
        logger.opt(exception=verbose).error(f"发生已知错误: {e}")
        console.print(f"[bold red]错误:[/bold red] {e}")
        ctx.exit(1)
    except Exception as e:
        logger.opt(exception=True).error(f"发生未知错误: {e}")
        console.print(f"[bold red]发生未知错误:[/bold red] {e}")
        ctx.exit(1)


if __name__ == "__main__":
    cli()
