import logging
import os
from pathlib import Path
from logging.handlers import RotatingFileHandler
from rt.common.setup import PATHS
from datetime import datetime

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s:%(filename)s:%(lineno)d] %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Env overrides, mostly for running from a terminal at the finish line
LOG_LEVEL_ENV = "RACETIMER_LOG_LEVEL"
LOG_CONSOLE_ENV = "RACETIMER_LOG_CONSOLE"

# Reads the level for the main log files from RACETIMER_LOG_LEVEL ("DEBUG", "WARNING", ...), falling back to INFO.
def resolve_level(default=logging.INFO):
    name = os.getenv(LOG_LEVEL_ENV, "").strip().upper()
    level = logging.getLevelName(name) if name else default
    return level if isinstance(level, int) else default

# Adds the handler under the given name unless the logger already has one by that name, so calling get_logger twice
# never doubles output.
def _attach(logger, handler_name, make_handler, level, fmt):
    if any(h.get_name() == handler_name for h in logger.handlers):
        return
    handler = make_handler()
    handler.setLevel(level)
    handler.setFormatter(fmt)
    handler.set_name(handler_name)
    logger.addHandler(handler)

# Every run gets its own debug log so a disputed result can be reconstructed split by split. Only the newest
# `keep` of them are kept.
def _race_debug_handler(log_dir: Path, name, keep):
    debug_dir = log_dir / "debug"
    debug_dir.mkdir(parents=True,exist_ok=True)
    path = debug_dir / f"{name}_{datetime.now():%Y-%m-%d_%H-%M-%S}.log"

    runs = sorted(debug_dir.glob(f"{name}_*.log"),key=lambda p: p.stat().st_mtime,reverse=True)
    for run in runs[max(keep - 1, 0):]:
        try: run.unlink()
        except OSError: pass

    return logging.FileHandler(filename=path, encoding="utf-8", delay=False)

def get_logger(
        name = "racetimer",
        level = logging.INFO,
        log_dir: Path | None = None,
        max_bytes = 2 * 1024 * 1024,
        backup_count = 3,
        console = False,
        race_debug_logs: int = 10
) -> logging.Logger:
    logger = logging.getLogger(name)
    logger.propagate = False
    logger.setLevel(logging.DEBUG)

    log_dir = log_dir or PATHS.logs
    log_dir.mkdir(parents=True,exist_ok=True)
    fmt = logging.Formatter(LOG_FORMAT,LOG_DATE_FORMAT)

    # Rolling history across runs
    _attach(logger, f"{name}:persistent", lambda: RotatingFileHandler(
        filename=log_dir / f"{name}.log",
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding="utf-8",
    ), level, fmt)

    # Just this run, overwritten on each start
    _attach(logger, f"{name}:latest", lambda: logging.FileHandler(
        filename=log_dir / "latest.log", mode="w", encoding="utf-8",
    ), level, fmt)

    if race_debug_logs > 0:
        _attach(logger, f"{name}:race_debug", lambda: _race_debug_handler(log_dir, name, race_debug_logs),
                logging.DEBUG, fmt)

    if console:
        _attach(logger, f"{name}:console", logging.StreamHandler, level, fmt)

    return logger

log = get_logger(level=resolve_level(),console=bool(os.getenv(LOG_CONSOLE_ENV)))
log.info("=== RACE TIMER STARTED ===")
