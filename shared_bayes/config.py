"""
Configuration management for shared-bayes.
"""

import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, List, Optional

import redis.asyncio as redis
import tomli
from dotenv import load_dotenv

from .exceptions import ClassifierConfigError
from .models import DEFAULT_CORRECTION, ClassifierConfig

logger = logging.getLogger(__name__)


def replaceMatchToEnv(match: re.Match[str]) -> str:
    """Replace environment variable placeholder with its value, keep placeholder if not set"""
    key = match.group(1)
    return os.getenv(key, match.group(0))


def substituteEnvVars(value: Any) -> Any:
    """Recursively substitute ${VAR_NAME} placeholders in strings, dicts and lists"""
    if isinstance(value, str):
        return re.sub(r"\$\{([A-Za-z_][A-Za-z0-9_-]*)\}", replaceMatchToEnv, value)
    elif isinstance(value, dict):
        return {k: substituteEnvVars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [substituteEnvVars(item) for item in value]
    return value


class ConfigManager:
    """Manages configuration loading and validation for shared-bayes."""

    def __init__(
        self, configPath: str = "config.toml", configDirs: Optional[List[str]] = None, dotEnvFile: str = ".env"
    ):
        """
        Initialize ConfigManager with config file path and optional config directories.

        Raises:
            ClassifierConfigError: If no configuration can be loaded
        """
        self.configPath = configPath
        self.configDirs = configDirs or []
        if load_dotenv(dotenv_path=dotEnvFile, override=False):
            logger.info(f"Loaded environment from {dotEnvFile}")
        self.config = substituteEnvVars(self._loadConfig())

    def _findTomlFilesRecursive(self, directory: str) -> List[Path]:
        """Recursively find all .toml files in a directory, dood!"""
        dirPath = Path(directory)

        if not dirPath.is_dir():
            logger.warning(f"Config directory {directory} does not exist or is not a directory, skipping, dood!")
            return []

        tomlFiles = [tomlFile for tomlFile in dirPath.rglob("*.toml") if tomlFile.is_file()]
        return sorted(tomlFiles)  # Sort for consistent ordering

    def _mergeConfigs(self, baseConfig: Dict[str, Any], newConfig: Dict[str, Any]) -> Dict[str, Any]:
        """Recursively merge two configuration dictionaries, dood!"""
        merged = baseConfig.copy()

        for key, value in newConfig.items():
            if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
                merged[key] = self._mergeConfigs(merged[key], value)
            else:
                merged[key] = value

        return merged

    def _loadTomlFile(self, path: Path) -> Dict[str, Any]:
        try:
            with open(path, "rb") as f:
                return tomli.load(f)
        except tomli.TOMLDecodeError as e:
            raise ClassifierConfigError(f"Invalid TOML in {path}: {e}") from e

    def _loadConfig(self) -> Dict[str, Any]:
        """Load configuration from TOML file and optional config directories."""
        configFile = Path(self.configPath)
        hasConfigFile = configFile.is_file()
        if not hasConfigFile and not self.configDirs:
            raise ClassifierConfigError(f"Configuration file {self.configPath} not found!")

        config: Dict[str, Any] = {}
        if hasConfigFile:
            config = self._loadTomlFile(configFile)
            logger.info(f"Loaded main config from {self.configPath}")

        for configDir in self.configDirs:
            tomlFiles = self._findTomlFilesRecursive(configDir)
            logger.info(f"Found {len(tomlFiles)} .toml files in {configDir}")

            for tomlFile in tomlFiles:
                config = self._mergeConfigs(config, self._loadTomlFile(tomlFile))
                logger.debug(f"Merged config from {tomlFile}")

        return config

    def get(self, key: str, default=None) -> Any:
        """Get configuration value by key."""
        return self.config.get(key, default)

    def getRedisConfig(self) -> Dict[str, Any]:
        """
        Get Redis connection configuration.

        Keys: url, host, port, db, password, socket-timeout.
        When url is set it takes precedence over host/port/db.
        """
        return self.get("redis", {})

    def getLoggingConfig(self) -> Dict[str, Any]:
        """Get logging-specific configuration."""
        return self.get("logging", {})

    def getClassifierConfig(self) -> ClassifierConfig:
        """
        Get classifier configuration.

        Raises:
            ClassifierConfigError: If namespace is missing or correction is invalid
        """
        section = self.get("classifier", {})
        correction = section.get("correction", DEFAULT_CORRECTION)
        if isinstance(correction, str):
            try:
                correction = float(correction)
            except ValueError as e:
                raise ClassifierConfigError(f"Correction must be a number, got '{correction}'") from e

        return ClassifierConfig(namespace=section.get("namespace", ""), correction=correction)

    def createRedisClient(self) -> redis.Redis:
        """Create redis.asyncio client from [redis] section"""
        redisConfig = self.getRedisConfig()
        socketTimeout = redisConfig.get("socket-timeout", None)
        if socketTimeout is not None:
            socketTimeout = float(socketTimeout)

        url = redisConfig.get("url", None)
        if url:
            logger.info("Connecting to Redis by URL")
            return redis.Redis.from_url(url, decode_responses=True, socket_timeout=socketTimeout)

        host = redisConfig.get("host", "localhost")
        port = int(redisConfig.get("port", 6379))
        logger.info(f"Connecting to Redis at {host}:{port}")
        return redis.Redis(
            host=host,
            port=port,
            db=int(redisConfig.get("db", 0)),
            password=redisConfig.get("password", None) or None,
            socket_timeout=socketTimeout,
            decode_responses=True,
        )
