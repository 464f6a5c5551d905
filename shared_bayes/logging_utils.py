"""
Logging utilities for shared-bayes.

Reads the [logging] config section:

    level, format, propagate     logger settings
    console, console-level       stream handler
    file, file-level, rotate     file handler, rotated at midnight if rotate
    quiet                        loggers kept at WARNING while root is more verbose
    [logging.logger.<name>]      same keys for a named logger
"""

import logging
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# redis-py logs every connection event on DEBUG
DEFAULT_QUIET_LOGGERS = ["redis"]


def getLogLevelByStr(levelStr: str, default: Optional[int] = None) -> Optional[int]:
    """Get log level by string."""
    level = getattr(logging, str(levelStr).upper(), None)
    if not isinstance(level, int):
        logger.error(f"Invalid log level '{levelStr}'")
        return default
    return level


def _handlerLevel(config: Dict[str, Any], key: str, default: int) -> int:
    if key not in config:
        return default
    level = getLogLevelByStr(config[key], default)
    return default if level is None else level


def _createFileHandler(logFile: str, rotate: bool) -> logging.Handler:
    Path(logFile).parent.mkdir(parents=True, exist_ok=True)
    if rotate:
        return TimedRotatingFileHandler(filename=logFile, when="midnight", interval=1, backupCount=7, encoding="utf-8")
    return logging.FileHandler(logFile, encoding="utf-8")


def configureLogger(localLogger: logging.Logger, config: Dict[str, Any]) -> None:
    """Configure individual logger from config file settings."""
    if "propagate" in config:
        localLogger.propagate = bool(config["propagate"])

    if "level" in config:
        level = getLogLevelByStr(config["level"])
        if level is not None:
            localLogger.setLevel(level)

    effectiveLevel = localLogger.getEffectiveLevel()
    formatter = logging.Formatter(config.get("format", DEFAULT_FORMAT))

    # Reconfiguring must not duplicate output
    for handler in localLogger.handlers[:]:
        localLogger.removeHandler(handler)

    handlers: List[logging.Handler] = []

    if config.get("console", False):
        consoleHandler = logging.StreamHandler()
        consoleHandler.setLevel(_handlerLevel(config, "console-level", effectiveLevel))
        handlers.append(consoleHandler)

    if "file" in config:
        try:
            fileHandler = _createFileHandler(config["file"], bool(config.get("rotate", False)))
        except OSError as e:
            logger.error(f"Failed to setup file logging for {localLogger.name}: {e}")
        else:
            fileHandler.setLevel(_handlerLevel(config, "file-level", effectiveLevel))
            handlers.append(fileHandler)

    for handler in handlers:
        handler.setFormatter(formatter)
        localLogger.addHandler(handler)
        logger.info(f"Logging {localLogger.name} to {type(handler).__name__}, logLevel: {handler.level}")


def initLogging(config: Dict[str, Any]) -> None:
    """Configure logging from config file settings."""
    rootLogger = logging.getLogger()
    rootLogger.setLevel(logging.INFO)

    configureLogger(rootLogger, config)
    rootLevel = rootLogger.getEffectiveLevel()

    if rootLevel < logging.WARNING:
        for name in config.get("quiet", DEFAULT_QUIET_LOGGERS):
            logging.getLogger(name).setLevel(logging.WARNING)

    for loggerName, loggerConfig in config.get("logger", {}).items():
        logger.debug(f"Configuring logger '{loggerName}' with config {loggerConfig}")
        configureLogger(logging.getLogger(loggerName), loggerConfig)

    logger.info(f"Logging configured: root level={logging.getLevelName(rootLevel)}")
