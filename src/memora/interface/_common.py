"""Helpers shared by CLI command modules."""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import typer

from memora.application.config import AppConfig, resolve_config
from memora.domain.errors import MemoraError

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _resolve_with_overrides(ctx: typer.Context | None = None, **kwargs: Any) -> AppConfig:
    """Resolve config, layering the global --data-dir/-v options under command overrides."""
    overrides: dict[str, Any] = {}
    bonus = 0
    if ctx is not None and ctx.obj:
        data_dir: Path | None = ctx.obj.get("data_dir")
        if data_dir is not None:
            overrides["data_dir"] = data_dir
        bonus = ctx.obj.get("verbose_bonus", 0)
    overrides.update(kwargs)

    with reported_errors():
        config = resolve_config(overrides)
    if bonus:
        config = config.model_copy(update={"verbose": config.verbose + bonus})

    configure_logging(config)
    return config


def _log_level(verbose: int) -> int:
    if verbose <= 0:
        return logging.WARNING
    if verbose == 1:
        return logging.INFO
    return logging.DEBUG


def configure_logging(config: AppConfig) -> None:
    """Set the memora log level from config.verbose and log to a file under config.log_dir."""
    root = logging.getLogger("memora")
    root.setLevel(_log_level(config.verbose))

    log_path = config.log_path
    for handler in list(root.handlers):
        if not isinstance(handler, logging.FileHandler):
            continue
        if Path(handler.baseFilename) == log_path:
            return
        # A different log_dir was resolved: move the file handler over
        root.removeHandler(handler)
        handler.close()

    log_path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_path, encoding="utf-8")
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)


def humanize_error(e: Exception) -> str:
    if isinstance(e, MemoraError):
        return str(e)
    return f"{type(e).__name__}: {e}"


@contextmanager
def reported_errors() -> Iterator[None]:
    """Turn domain errors into a red message and exit code 1."""
    try:
        yield
    except MemoraError as e:
        logger.debug("Command failed", exc_info=True)
        typer.secho(humanize_error(e), fg="red", err=True)
        raise typer.Exit(1) from e
