"""Main CLI entry point for md-to-notion command.

This module provides the Typer application that serves as the entry point
for the md-to-notion command-line tool: a single command taking the
markdown directory as argument, with options mirroring the sync settings.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

import typer

from md_to_notion import __version__
from md_to_notion.cli.config import ConfigLoader
from md_to_notion.cli.errors import ConfigNotFoundError
from md_to_notion.cli.models import ExitCode, FileConfig
from md_to_notion.cli.output import OutputHandler
from md_to_notion.cli.sync_command import SyncCommand, SyncRequest
from md_to_notion.content_converter.link_replacer import (
    GITHUB_LINK_REPLACEMENT,
    REPL_GITHUB_PATH,
    make_github_replacer,
    make_template_replacer,
)
from md_to_notion.file_mapper.errors import ConfigError, FilesystemError
from md_to_notion.file_mapper.models import LinkReplacer, SyncOptions
from md_to_notion.notion_api.auth import PAGE_ID_ENV_VAR, TOKEN_ENV_VAR, Authenticator

app = typer.Typer(
    name="md-to-notion",
    help="""Sync a directory of markdown files to a Notion page tree.

EXAMPLE:
  md-to-notion ./docs --page-id <root page id> --delete --show-progress""",
    add_completion=False,
    rich_markup_mode=None,
)

# Module logger
logger = logging.getLogger(__name__)

DEFAULT_PARALLEL_LIMIT = 25
DEFAULT_REQUEST_DELAY_MS = 50
DEFAULT_MAX_RETRY_ATTEMPTS = 3
DEFAULT_MAX_DEPTH = 10


def _configure_logging(verbosity: int, logdir: Optional[str] = None) -> None:
    """Configure logging based on verbosity level.

    Configures only the 'md_to_notion' namespace logger to avoid affecting
    third-party libraries. The root logger is left unchanged.

    Args:
        verbosity: Verbosity level (0=WARNING, 1=INFO, 2=DEBUG)
        logdir: Optional directory for log files (creates timestamped log file)
    """
    if verbosity == 0:
        level = logging.WARNING
    elif verbosity == 1:
        level = logging.INFO
    else:  # verbosity >= 2
        level = logging.DEBUG

    app_logger = logging.getLogger("md_to_notion")
    app_logger.setLevel(level)
    app_logger.handlers.clear()

    log_format = "%(asctime)s [%(levelname)8s] %(message)s"
    date_format = "%Y-%m-%d %H:%M:%S"
    formatter = logging.Formatter(log_format, datefmt=date_format)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    app_logger.addHandler(console_handler)

    if logdir:
        log_path = Path(logdir)
        log_path.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file = log_path / f"md-to-notion_{timestamp}.log"

        file_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        file_formatter = logging.Formatter(file_format, datefmt=date_format)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(file_formatter)
        app_logger.addHandler(file_handler)

        logger.info(f"Logging to file: {log_file}")


def _pick(cli_value, file_value, default):
    """Command-line value, else config file value, else default."""
    if cli_value is not None:
        return cli_value
    if file_value is not None:
        return file_value
    return default


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"md-to-notion version {__version__}")
        raise typer.Exit()


def _build_replacer(
    link_replacer: Optional[str],
    github_path: Optional[str],
) -> Optional[LinkReplacer]:
    if link_replacer:
        return make_template_replacer(link_replacer)
    if github_path:
        return make_github_replacer(github_path)
    return None


@app.command()
def main_command(
    directory: str = typer.Argument(
        ...,
        help="Directory containing markdown files",
    ),
    token: Optional[str] = typer.Option(
        None,
        "--token",
        "-t",
        envvar=TOKEN_ENV_VAR,
        help=f"Notion API token (default: ${TOKEN_ENV_VAR})",
        show_envvar=False,
    ),
    page_id: Optional[str] = typer.Option(
        None,
        "--page-id",
        "-p",
        envvar=PAGE_ID_ENV_VAR,
        help=f"Target Notion root page id or URL (default: ${PAGE_ID_ENV_VAR})",
        show_envvar=False,
    ),
    include: Optional[str] = typer.Option(
        None,
        "--include",
        "-i",
        help="Sync only paths containing this text (default: all files)",
    ),
    exclude: Optional[str] = typer.Option(
        None,
        "--exclude",
        help="Skip paths containing this text (default: node_modules)",
    ),
    link_replacer: Optional[str] = typer.Option(
        None,
        "--link-replacer",
        "-r",
        help="Custom link replacement using ${text} and ${linkPathFromRoot}; try -g for raw GitHub links",
    ),
    github_path: Optional[str] = typer.Option(
        None,
        "--use-github-link-replacer",
        "-g",
        help=(
            "Replace relative links with raw GitHub links, e.g. 'owner/repo/blob/main'. "
            f"Short for -r '{GITHUB_LINK_REPLACEMENT.replace(REPL_GITHUB_PATH, '<githubPath>')}'"
        ),
        metavar="GITHUB_PATH",
    ),
    delete: Optional[bool] = typer.Option(
        None,
        "--delete",
        "-d",
        help="Archive pages in Notion that don't exist locally",
    ),
    renew: bool = typer.Option(
        False,
        "--renew",
        "-n",
        help="Archive all child pages of the root page before syncing",
    ),
    state_file: Optional[str] = typer.Option(
        None,
        "--state-file",
        "-s",
        help="Path to sync state file (default: ~/.md-to-notion/sync-state.json)",
    ),
    parallel_limit: Optional[int] = typer.Option(
        None,
        "--parallel-limit",
        min=1,
        help=f"Maximum number of parallel API requests (default: {DEFAULT_PARALLEL_LIMIT})",
    ),
    request_delay: Optional[int] = typer.Option(
        None,
        "--request-delay",
        min=0,
        help=f"Delay between API requests in milliseconds (default: {DEFAULT_REQUEST_DELAY_MS})",
    ),
    max_retry_attempts: Optional[int] = typer.Option(
        None,
        "--max-retry-attempts",
        min=1,
        help=f"Maximum attempts for rate-limited requests (default: {DEFAULT_MAX_RETRY_ATTEMPTS})",
    ),
    max_depth: Optional[int] = typer.Option(
        None,
        "--max-depth",
        min=0,
        help=f"Maximum depth for crawling pages and reading nested blocks (default: {DEFAULT_MAX_DEPTH})",
    ),
    show_progress: bool = typer.Option(
        False,
        "--show-progress",
        help="Show progress indicators during sync",
    ),
    config: Optional[str] = typer.Option(
        None,
        "--config",
        "-c",
        help=f"YAML config file (default: {ConfigLoader.DEFAULT_CONFIG_FILE} if present)",
    ),
    logdir: Optional[str] = typer.Option(
        None,
        "--logdir",
        help="Directory for log files (creates timestamped log file)",
    ),
    verbosity: int = typer.Option(
        0,
        "--verbose",
        "-v",
        count=True,
        help="Increase verbosity (-v info, -vv debug); also prints the folder hierarchy",
    ),
    no_color: bool = typer.Option(
        False,
        "--no-color",
        help="Disable colored output",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """Sync a directory of markdown files to a Notion page tree.

    Every folder becomes a page and every markdown file a child page with
    its content. Unchanged files are skipped using the state file.
    """
    _configure_logging(verbosity, logdir)
    output = OutputHandler(verbosity=verbosity, no_color=no_color)

    try:
        file_config = ConfigLoader.load(config)
    except (ConfigError, ConfigNotFoundError, FilesystemError) as e:
        logger.error(f"Configuration error: {e}")
        output.error(f"Configuration error: {e}")
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    request = _build_request(
        directory=directory,
        page_id=page_id,
        file_config=file_config,
        include=include,
        exclude=exclude,
        link_replacer=link_replacer,
        github_path=github_path,
        delete=delete,
        renew=renew,
        state_file=state_file,
        parallel_limit=parallel_limit,
        request_delay=request_delay,
        max_retry_attempts=max_retry_attempts,
        max_depth=max_depth,
        progress=output.make_progress_callback() if show_progress else None,
    )

    sync_cmd = SyncCommand(
        output_handler=output,
        authenticator=Authenticator(api_token=token, page_id=page_id),
    )
    exit_code = sync_cmd.run(request)
    raise typer.Exit(exit_code)


def _build_request(
    directory: str,
    page_id: Optional[str],
    file_config: FileConfig,
    include: Optional[str] = None,
    exclude: Optional[str] = None,
    link_replacer: Optional[str] = None,
    github_path: Optional[str] = None,
    delete: Optional[bool] = None,
    renew: bool = False,
    state_file: Optional[str] = None,
    parallel_limit: Optional[int] = None,
    request_delay: Optional[int] = None,
    max_retry_attempts: Optional[int] = None,
    max_depth: Optional[int] = None,
    progress=None,
) -> SyncRequest:
    """Combine command-line values, config file values and defaults."""
    depth = _pick(max_depth, file_config.max_depth, DEFAULT_MAX_DEPTH)
    options = SyncOptions(
        parallel_limit=_pick(parallel_limit, file_config.parallel_limit, DEFAULT_PARALLEL_LIMIT),
        request_delay=_pick(request_delay, file_config.request_delay_ms, DEFAULT_REQUEST_DELAY_MS) / 1000,
        max_retry_attempts=_pick(
            max_retry_attempts, file_config.max_retry_attempts, DEFAULT_MAX_RETRY_ATTEMPTS
        ),
        max_depth=depth,
        max_block_depth=depth,
        delete_orphans=_pick(delete, file_config.delete_orphans, False),
        progress_callback=progress,
    )
    return SyncRequest(
        directory=directory,
        page_id=page_id,
        options=options,
        state_file=_pick(state_file, file_config.state_file, None),
        include=_pick(include, file_config.include, None),
        exclude=_pick(exclude, file_config.exclude, None),
        replacer=_build_replacer(_pick(link_replacer, file_config.link_replacer, None), github_path),
        renew=renew,
    )


def main() -> None:
    """Main entry point for the CLI application.

    This function is called when the module is executed directly or
    when the console script is invoked.
    """
    app()


# Allow running as: python -m md_to_notion.cli.main
if __name__ == "__main__":
    main()
