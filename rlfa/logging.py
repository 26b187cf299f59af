"""
Logging for rlfa. Loggers are namespaced under `rlfa.` and each owns a single stderr handler.
"""
import logging
import sys
from typing import Dict, Optional, TextIO, Union

_DEFAULT_LEVEL = logging.WARNING
_DEFAULT_FORMAT = '[%(levelname)s] %(name)s: %(message)s'

_loggers: Dict[str, logging.Logger] = {}


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """ Cached logger for a module name (typically __name__), or the package logger when name is None """
    if name is None:
        name = 'rlfa'

    logger_name = name if name == 'rlfa' or name.startswith('rlfa.') else f'rlfa.{name}'
    if logger_name in _loggers:
        return _loggers[logger_name]

    logger = logging.getLogger(logger_name)
    if not logger.handlers:
        logger.setLevel(_DEFAULT_LEVEL)

        handler = logging.StreamHandler(sys.stderr)
        handler.setLevel(_DEFAULT_LEVEL)
        handler.setFormatter(logging.Formatter(_DEFAULT_FORMAT))

        logger.addHandler(handler)
        logger.propagate = False

    _loggers[logger_name] = logger
    return logger


def _as_level(level: Union[int, str]) -> int:
    if isinstance(level, str):
        return getattr(logging, level.upper(), logging.WARNING)
    return level


def set_log_level(level: Union[int, str]) -> None:
    """ Set the level of every rlfa logger and of loggers created later """
    global _DEFAULT_LEVEL
    level = _as_level(level)

    for logger in _loggers.values():
        logger.setLevel(level)
        for handler in logger.handlers:
            handler.setLevel(level)

    _DEFAULT_LEVEL = level


def configure_logging(level: Union[int, str] = logging.WARNING, format_string: Optional[str] = None,
                      stream: Optional[TextIO] = None) -> None:
    """ Replace the handler of every rlfa logger, with a new level, format and output stream (default stderr) """
    global _DEFAULT_LEVEL
    level = _as_level(level)
    formatter = logging.Formatter(format_string or _DEFAULT_FORMAT)

    for logger in _loggers.values():
        logger.setLevel(level)
        for handler in logger.handlers[:]:
            logger.removeHandler(handler)
        handler = logging.StreamHandler(stream or sys.stderr)
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    _DEFAULT_LEVEL = level
