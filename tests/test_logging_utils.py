"""
Tests for logging configuration helpers.
"""

import logging
from logging.handlers import TimedRotatingFileHandler

import pytest

from shared_bayes.logging_utils import configureLogger, getLogLevelByStr, initLogging


@pytest.fixture
def testLogger():
    """Provide a dedicated logger, cleaned after the test."""
    localLogger = logging.getLogger("shared_bayes.tests.logging")
    yield localLogger
    for handler in localLogger.handlers[:]:
        localLogger.removeHandler(handler)
        handler.close()
    localLogger.setLevel(logging.NOTSET)
    localLogger.propagate = True


class TestGetLogLevelByStr:
    """Test level name parsing."""

    @pytest.mark.parametrize(
        "levelStr, expected",
        [("DEBUG", logging.DEBUG), ("info", logging.INFO), ("Warning", logging.WARNING), ("ERROR", logging.ERROR)],
    )
    def testValidLevels(self, levelStr, expected):
        """Test case-insensitive level names."""
        assert getLogLevelByStr(levelStr) == expected

    def testInvalidLevel(self):
        """Test that unknown names return the default."""
        assert getLogLevelByStr("LOUD") is None
        assert getLogLevelByStr("LOUD", logging.INFO) == logging.INFO
        assert getLogLevelByStr("basicConfig", logging.INFO) == logging.INFO


class TestConfigureLogger:
    """Test configureLogger()."""

    def testConsoleHandler(self, testLogger):
        """Test console handler with separate level."""
        configureLogger(testLogger, {"level": "DEBUG", "console": True, "console-level": "ERROR", "propagate": False})

        assert testLogger.level == logging.DEBUG
        assert testLogger.propagate is False
        assert len(testLogger.handlers) == 1
        assert isinstance(testLogger.handlers[0], logging.StreamHandler)
        assert testLogger.handlers[0].level == logging.ERROR

    def testFileHandler(self, testLogger, tmp_path):
        """Test file handler writes formatted records."""
        logFile = tmp_path / "logs" / "bayes.log"
        configureLogger(testLogger, {"level": "INFO", "file": str(logFile), "format": "%(levelname)s %(message)s"})

        testLogger.info("trained ham")
        for handler in testLogger.handlers:
            handler.flush()

        assert logFile.read_text(encoding="utf-8") == "INFO trained ham\n"

    def testRotatingFileHandler(self, testLogger, tmp_path):
        """Test rotation option."""
        configureLogger(testLogger, {"file": str(tmp_path / "bayes.log"), "rotate": True})

        assert isinstance(testLogger.handlers[0], TimedRotatingFileHandler)

    def testReconfigureReplacesHandlers(self, testLogger):
        """Test that configuring twice doesn't duplicate handlers."""
        configureLogger(testLogger, {"console": True})
        configureLogger(testLogger, {"console": True})

        assert len(testLogger.handlers) == 1


class TestInitLogging:
    """Test initLogging()."""

    def testRootAndNamedLoggers(self, rootLogger, testLogger):
        """Test root level and per-logger sections."""
        initLogging({"level": "DEBUG", "logger": {testLogger.name: {"level": "ERROR"}}})

        assert rootLogger.level == logging.DEBUG
        assert testLogger.level == logging.ERROR
        assert logging.getLogger("redis").level == logging.WARNING

    def testDefaultLevel(self, rootLogger):
        """Test that root logger defaults to INFO."""
        initLogging({})

        assert rootLogger.level == logging.INFO

    def testQuietLoggers(self, rootLogger):
        """Test that listed loggers stay at WARNING under a verbose root."""
        quietLogger = logging.getLogger("shared_bayes.tests.quiet")
        try:
            initLogging({"level": "DEBUG", "quiet": [quietLogger.name]})

            assert quietLogger.level == logging.WARNING
        finally:
            quietLogger.setLevel(logging.NOTSET)
