from __future__ import annotations
import logging
from logging.handlers import RotatingFileHandler
import os, functools, inspect, time
from pathlib import Path

_DEFAULT_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
_MAX_BYTES = int(os.getenv("LOG_MAX_BYTES", "1048576"))
_BACKUP_COUNT = int(os.getenv("LOG_BACKUP_COUNT", "3"))

class _LoggerManager:
    def __init__(self) -> None:
        self._configured = False
        self._module_handlers: dict[str, logging.Handler] = {}
        self._log_dir = os.getenv("LOG_DIR", "./logs")

    def _ensure(self) -> None:
        if self._configured:
            return

        level = getattr(logging, _DEFAULT_LEVEL, logging.INFO)
        fmt = logging.Formatter(
            fmt="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        )

        root = logging.getLogger()
        root.setLevel(level)
        if not any(isinstance(h, logging.StreamHandler) for h in root.handlers):
            sh = logging.StreamHandler()
            sh.setLevel(level); sh.setFormatter(fmt)
            root.addHandler(sh)

        # python-telegram-bot and httpx log every poll at INFO
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("telegram.ext").setLevel(logging.WARNING)

        Path(self._log_dir).mkdir(parents=True, exist_ok=True)
        self._configured = True

    def setup_logger(self, name: str) -> logging.Logger:
        self._ensure()
        logger = logging.getLogger(name)

        if name not in self._module_handlers:
            safe_name = name.replace(".", "_").replace("/", "_")
            file_path = os.path.join(self._log_dir, f"{safe_name}.log")
            try:
                fh = RotatingFileHandler(file_path, maxBytes=_MAX_BYTES, backupCount=_BACKUP_COUNT, encoding="utf-8")
            except OSError as e:
                logging.getLogger(__name__).warning(f"No file log for {name}: {e}")
                return logger
            fh.setLevel(getattr(logging, _DEFAULT_LEVEL, logging.INFO))
            fh.setFormatter(logging.Formatter(
                fmt="%(asctime)s | %(levelname)s | %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S"
            ))
            self._module_handlers[name] = fh
            logger.addHandler(fh)
            logger.propagate = True  # keeps console output

        return logger

logger_manager = _LoggerManager()

def log_function(func=None, *, log_args: bool = True):
    """Trace entry, exit and duration of a call.

    Works on plain and ``async`` functions. Use ``@log_function(log_args=False)``
    for calls whose arguments must never reach the log (private keys).
    """
    def decorate(fn):
        def _enter(logger, args, kwargs):
            if log_args:
                logger.debug(f"→ {fn.__name__} args={args} kwargs={kwargs}")
            else:
                logger.debug(f"→ {fn.__name__} (args hidden)")

        if inspect.iscoroutinefunction(fn):
            @functools.wraps(fn)
            async def async_wrapper(*args, **kwargs):
                logger = logger_manager.setup_logger(fn.__module__)
                _enter(logger, args, kwargs)
                t0 = time.time()
                try:
                    result = await fn(*args, **kwargs)
                    logger.debug(f"← {fn.__name__} ({(time.time()-t0)*1000:.1f} ms)")
                    return result
                except Exception as e:
                    logger.exception(f"✗ {fn.__name__}: {e}")
                    raise
            return async_wrapper

        @functools.wraps(fn)
        def wrapper(*args, **kwargs):
            logger = logger_manager.setup_logger(fn.__module__)
            _enter(logger, args, kwargs)
            t0 = time.time()
            try:
                result = fn(*args, **kwargs)
                logger.debug(f"← {fn.__name__} ({(time.time()-t0)*1000:.1f} ms)")
                return result
            except Exception as e:
                logger.exception(f"✗ {fn.__name__}: {e}")
                raise
        return wrapper

    if func is None:
        return decorate
    return decorate(func)
