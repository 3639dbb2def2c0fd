"""Engine-wide logging facade with contextual fields."""

from __future__ import annotations

import logging
import threading
from typing import Any

_std = logging.getLogger("rulematrix")


def _sprintf(fmt: str, args: tuple[Any, ...]) -> str:
    if not args:
        return fmt
    try:
        return fmt.replace("%v", "%s") % args
    except (TypeError, ValueError):
        return fmt + " " + " ".join(str(arg) for arg in args)


class StdLogger:
    """Logger writing through the standard ``logging`` module.

    Fields attached with ``with_fields`` are appended as ``key=value``.
    """

    def __init__(self, fields: tuple[Any, ...] = ()) -> None:
        self._fields = tuple(fields)

    def _format(self, fmt: str, args: tuple[Any, ...]) -> str:
        message = _sprintf(fmt, args)
        fields = self._fields
        for start in range(0, len(fields), 2):
            pair = fields[start:start + 2]
            value = pair[1] if len(pair) == 2 else "<missing>"
            message += f" {pair[0]}={value}"
        return message

    def _emit(self, level: int, prefix: str, fmt: str, args: tuple[Any, ...]) -> None:
        _std.log(level, "%s", prefix + self._format(fmt, args))

    def printf(self, ctx: Any, fmt: str, *args: Any) -> None:
        self._emit(logging.INFO, "", fmt, args)

    def debugf(self, ctx: Any, fmt: str, *args: Any) -> None:
        self._emit(logging.DEBUG, "[DEBUG] ", fmt, args)

    def infof(self, ctx: Any, fmt: str, *args: Any) -> None:
        self._emit(logging.INFO, "[INFO] ", fmt, args)

    def warnf(self, ctx: Any, fmt: str, *args: Any) -> None:
        self._emit(logging.WARNING, "[WARN] ", fmt, args)

    def errorf(self, ctx: Any, fmt: str, *args: Any) -> None:
        self._emit(logging.ERROR, "[ERROR] ", fmt, args)

    def with_fields(self, *args: Any) -> StdLogger:
        """Return a new logger carrying these key/value fields as well."""
        return StdLogger(self._fields + args)


_lock = threading.Lock()
_global_logger: Any = StdLogger()


def set_logger(logger: Any) -> None:
    """Replace the engine-wide logger."""
    global _global_logger
    with _lock:
        _global_logger = logger


def get_logger() -> Any:
    """Return the engine-wide logger."""
    with _lock:
        return _global_logger


def _logger_for(ctx: Any, fields: tuple[Any, ...]) -> Any:
    own = getattr(ctx, "logger", None) if ctx is not None else None
    logger = own if own is not None else get_logger()
    base: list[Any] = []
    if ctx is not None:
        if ctx.chain_id:
            base += ["chainId", ctx.chain_id]
        if ctx.node_id:
            base += ["nodeId", ctx.node_id]
    return logger.with_fields(*base, *fields)


def _context_of(ctx: Any) -> Any:
    return getattr(ctx, "context", None) if ctx is not None else None


def debug(ctx: Any, msg: str, *args: Any) -> None:
    _logger_for(ctx, args).debugf(_context_of(ctx), msg)


def info(ctx: Any, msg: str, *args: Any) -> None:
    _logger_for(ctx, args).infof(_context_of(ctx), msg)


def warn(ctx: Any, msg: str, *args: Any) -> None:
    _logger_for(ctx, args).warnf(_context_of(ctx), msg)


def error(ctx: Any, msg: str, *args: Any) -> None:
    _logger_for(ctx, args).errorf(_context_of(ctx), msg)