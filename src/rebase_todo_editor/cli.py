"""
Command-line interface for the rebase todo editor.
"""

from __future__ import annotations

import asyncio
import json
import logging
from logging.handlers import RotatingFileHandler
import sys
from pathlib import Path
from typing import Callable, Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from .commit_enricher import CommitEnricher, GitCommitEnricher, NoOpEnricher
from .config import EditorConfig, default_log_path
from .console_surface import ConsoleSurface, build_header_panel, build_plan_table
from .git_manager import repo_root_for_todo
from .models import RebaseAction, RebaseTodoError
from .plan_model import build_plan_model
from .protocol import IpcIdSequence, IpcMessage, MessageKind
from .sync_channel import SyncChannel
from .text_document import TextDocument
from .webview import WebviewRenderer
from . import __version__ as PACKAGE_VERSION


console = Console()
logger = logging.getLogger(__name__)

CONSOLE_HELP = (
    "Commands: up REF | down REF | set REF ACTION | refresh | start | abort | quit\n"
    "Actions: pick reword edit squash fixup break drop (or p r e s f b d)"
)


def _print_version(ctx, param, value):
    """Eager option callback to print version and exit."""
    if not value or ctx.resilient_parsing:
        return
    click.echo(f"rebase-todo-editor {PACKAGE_VERSION}")
    ctx.exit()


def setup_logging(verbose: bool = False, console_level: Optional[str] = None, log_file: Optional[Path] = None) -> Path:
    """Setup logging: a rotating file log always, rich console logging on request.

    Returns the path of the log file.
    """
    log_path = Path(log_file) if log_file else default_log_path()
    log_path.parent.mkdir(parents=True, exist_ok=True)

    root = logging.getLogger()
    # Clear existing handlers to avoid duplication in tests / repeated invocations
    root.handlers.clear()
    root.setLevel(logging.DEBUG)

    file_handler = RotatingFileHandler(str(log_path), maxBytes=1_000_000, backupCount=3, encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s %(levelname)s [%(name)s] %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    root.addHandler(file_handler)

    if verbose or console_level:
        level_map = {
            "debug": logging.DEBUG,
            "info": logging.INFO,
            "warning": logging.WARNING,
            "error": logging.ERROR,
        }
        console_handler = RichHandler(console=console, rich_tracebacks=True)
        console_handler.setLevel(level_map.get((console_level or "info").lower(), logging.INFO))
        console_handler.setFormatter(logging.Formatter("%(message)s"))
        root.addHandler(console_handler)

    return log_path


def _maybe_print_log_notice(ctx: click.Context) -> None:
    """Inform user about logging destination and how to enable console logs."""
    if ctx.obj.get("verbose") or ctx.obj.get("console_level"):
        return
    console.print(
        f"[dim]Logs are written to {ctx.obj.get('log_path')}. Use -v or --log-level to enable console logs.[/dim]"
    )


def _make_enricher(config: EditorConfig, enrich: bool) -> CommitEnricher:
    return GitCommitEnricher(config) if enrich else NoOpEnricher()


def parse_console_command(line: str, ids: IpcIdSequence) -> Optional[IpcMessage]:
    """Translate a console command into a protocol message.

    Returns None for ``quit``; raises ``click.BadParameter`` for anything
    that is not a valid command.
    """
    parts = line.split()
    if not parts:
        raise click.BadParameter("empty command")
    verb, args = parts[0].lower(), parts[1:]

    if verb in ("quit", "q", "exit"):
        return None
    if verb in ("start", "abort", "refresh") and not args:
        method = {
            "start": MessageKind.START,
            "abort": MessageKind.ABORT,
            "refresh": MessageKind.READY,
        }[verb]
        return IpcMessage(id=ids.next_id(), method=method.value)
    if verb in ("up", "down") and len(args) == 1:
        return IpcMessage(
            id=ids.next_id(),
            method=MessageKind.MOVE_ENTRY.value,
            params={"ref": args[0], "down": verb == "down"},
        )
    if verb == "set" and len(args) == 2:
        action = RebaseAction.parse(args[1])
        if action is None:
            raise click.BadParameter(f"unknown action '{args[1]}'")
        return IpcMessage(
            id=ids.next_id(),
            method=MessageKind.CHANGE_ENTRY.value,
            params={"ref": args[0], "action": action.value},
        )
    raise click.BadParameter(f"unrecognized command '{line.strip()}'")


async def run_console_session(
    document: TextDocument,
    enricher: CommitEnricher,
    config: EditorConfig,
    read_command: Callable[[], str],
) -> str:
    """Drive a SyncChannel from console commands until the plan is started, aborted or left.

    Returns ``"start"``, ``"abort"`` or ``"quit"``.
    """
    surface = ConsoleSurface(console)
    channel = SyncChannel(document, surface, enricher, config)
    channel.attach()
    ids = IpcIdSequence("console")
    await channel.push_state()

    outcome = "quit"
    try:
        while not surface.closed:
            line = read_command()
            try:
                message = parse_console_command(line, ids)
            except click.BadParameter as e:
                console.print(e.format_message(), style="red", markup=False)
                console.print(CONSOLE_HELP, style="dim")
                continue
            if message is None:
                break
            if message.method in (MessageKind.START.value, MessageKind.ABORT.value):
                outcome = "start" if message.method == MessageKind.START.value else "abort"
            await channel.on_message_received(message.to_dict())
    finally:
        channel.dispose()
    return outcome


@click.group()
@click.option(
    "--version",
    "-V",
    is_flag=True,
    callback=_print_version,
    expose_value=False,
    is_eager=True,
    help="Show version and exit.",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose console logging (INFO)")
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warning", "error"], case_sensitive=False),
    default=None,
    help="Console log level. By default, console logging is disabled.",
)
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Log file path (defaults to ~/.rebase-todo-editor/rebase-todo-editor.log)",
)
@click.option("--date-format", default=None, help="strftime pattern for commit dates")
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    log_level: Optional[str],
    log_file: Optional[Path],
    date_format: Optional[str],
) -> None:
    """Rebase Todo Editor - view and reorder an interactive rebase plan."""
    log_path = setup_logging(verbose, console_level=log_level, log_file=log_file)

    config = EditorConfig.from_env()
    if date_format:
        config.date_format = date_format

    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["console_level"] = log_level
    ctx.obj["log_path"] = log_path
    ctx.obj["config"] = config
    logger.debug(f"CLI init: cwd={Path.cwd()} config={config}")


@cli.command()
@click.argument("todo_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--json", "as_json", is_flag=True, help="Print the plan snapshot as JSON")
@click.option("--no-enrich", is_flag=True, help="Skip commit metadata lookup")
@click.pass_context
def show(ctx: click.Context, todo_file: Path, as_json: bool, no_enrich: bool) -> None:
    """
    Show the rebase plan in TODO_FILE.

    Example: rebase-todo-editor show .git/rebase-merge/git-rebase-todo
    """
    config = ctx.obj["config"]
    try:
        document = TextDocument.open(todo_file)
        model = asyncio.run(
            build_plan_model(
                document.get_text(),
                _make_enricher(config, not no_enrich),
                repo_root_for_todo(todo_file),
                parallel=config.parallel_enrichment,
            )
        )
    except (OSError, RebaseTodoError) as e:
        console.print(f"\n❌ **Error:** {escape(str(e))}", style="bold red")
        logger.debug("show failed", exc_info=True)
        sys.exit(1)

    if as_json:
        click.echo(json.dumps(model.to_dict(), indent=2))
        return

    state = model.to_dict()
    console.print(build_header_panel(state))
    console.print(build_plan_table(state))


@cli.command()
@click.argument("todo_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--no-enrich", is_flag=True, help="Skip commit metadata lookup")
@click.pass_context
def edit(ctx: click.Context, todo_file: Path, no_enrich: bool) -> None:
    """
    Edit the rebase plan in TODO_FILE interactively.

    Usable as a sequence editor: GIT_SEQUENCE_EDITOR="rebase-todo-editor edit"
    """
    _maybe_print_log_notice(ctx)
    config = ctx.obj["config"]
    try:
        document = TextDocument.open(todo_file)
        console.print(CONSOLE_HELP, style="dim")
        outcome = asyncio.run(
            run_console_session(
                document,
                _make_enricher(config, not no_enrich),
                config,
                lambda: click.prompt("rebase", prompt_suffix="> "),
            )
        )
    except (OSError, RebaseTodoError) as e:
        console.print(f"\n❌ **Error:** {escape(str(e))}", style="bold red")
        logger.debug("edit failed", exc_info=True)
        sys.exit(1)

    if outcome == "start":
        console.print("✅ Rebase plan saved", style="bold green")
    elif outcome == "abort":
        console.print("🚫 Rebase plan cleared, the rebase will be aborted", style="bold yellow")
    else:
        console.print("Leaving the rebase plan unchanged.")


@cli.command()
@click.argument("todo_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--template",
    "template_path",
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="HTML template containing #{root} and #{endOfBody} tokens",
)
@click.option("--root", "root_uri", default=None, help="URI substituted for #{root}")
@click.option("--output", "-o", type=click.Path(dir_okay=False, path_type=Path), default=None)
@click.option("--no-enrich", is_flag=True, help="Skip commit metadata lookup")
@click.pass_context
def html(
    ctx: click.Context,
    todo_file: Path,
    template_path: Path,
    root_uri: Optional[str],
    output: Optional[Path],
    no_enrich: bool,
) -> None:
    """Render the webview page for TODO_FILE with the plan bootstrapped in."""
    config = ctx.obj["config"]
    try:
        document = TextDocument.open(todo_file)
        model = asyncio.run(
            build_plan_model(
                document.get_text(),
                _make_enricher(config, not no_enrich),
                repo_root_for_todo(todo_file),
                parallel=config.parallel_enrichment,
            )
        )
        renderer = WebviewRenderer(
            template_path, root_uri or template_path.resolve().parent.as_uri(), config
        )
        markup = renderer.render(model)
    except (OSError, RebaseTodoError) as e:
        console.print(f"\n❌ **Error:** {escape(str(e))}", style="bold red")
        logger.debug("html failed", exc_info=True)
        sys.exit(1)

    if output:
        output.write_text(markup, encoding="utf-8")
        console.print(f"Wrote {output}")
    else:
        click.echo(markup)


def main() -> None:
    """Main entry point for the CLI."""
    try:
        cli()
    except KeyboardInterrupt:
        console.print("\n\n🚫 **Operation cancelled by user**", style="bold yellow")
        logger.debug("Top-level cancellation (KeyboardInterrupt)", exc_info=True)
        sys.exit(130)
    except Exception as e:
        console.print(f"\n💥 **Unexpected error:** {e}", style="bold red")
        logger.debug("Unexpected error in main()", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
