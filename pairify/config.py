"""
Load and provide the settings for the program from a YAML config file.
"""
import logging.config
import os
from abc import ABCMeta, abstractmethod
from copy import deepcopy
from os.path import isabs, join, splitext, exists
from typing import Any

import yaml

from pairify import PACKAGE_ROOT, MODULE_ROOT
from pairify.catalog.spotify import SpotifyCatalog
from pairify.exception import ConfigError
from pairify.selection.suggestions import DEBOUNCE_DELAY
from pairify.utils import limit_value, obfuscate, to_collection


class BaseConfig(metaclass=ABCMeta):
    """Base config section representing a config block from the file"""

    def __init__(self, settings: dict[Any, Any], key: Any | None = None):
        self._file: dict[Any, Any] = (settings.get(key) or {}) if key else settings
        if not isinstance(self._file, dict):
            raise ConfigError("Config block must be a mapping: {key} | {value}", key=key, value=self._file)

    @abstractmethod
    def as_dict(self) -> dict[str, Any]:
        """Return the settings for this section as a dictionary which is safe to log"""
        raise NotImplementedError


class ConfigSpotify(BaseConfig):
    """
    Set the settings for the Spotify catalog from a config file.
    See :py:class:`Config` for more documentation regarding operation.

    :param settings: The loaded config from the config file.
    """

    def __init__(self, settings: dict[Any, Any]):
        super().__init__(settings=settings, key="spotify")

        self._client_id: str | None = None
        self._client_secret: str | None = None
        self._search_limit: int | None = None

    @property
    def client_id(self) -> str | None:
        """
        `OPTIONAL` | The client ID to use when authorising access to the API.
        Taken from the ``SPOTIFY_CLIENT_ID`` environment variable when not set.
        """
        if self._client_id is not None:
            return self._client_id
        self._client_id = self._file.get("client_id") or os.getenv("SPOTIFY_CLIENT_ID")
        return self._client_id

    @property
    def client_secret(self) -> str | None:
        """
        `OPTIONAL` | The client secret to use when authorising access to the API.
        Taken from the ``SPOTIFY_CLIENT_SECRET`` environment variable when not set.
        """
        if self._client_secret is not None:
            return self._client_secret
        self._client_secret = self._file.get("client_secret") or os.getenv("SPOTIFY_CLIENT_SECRET")
        return self._client_secret

    @property
    def token(self) -> dict[str, Any] | None:
        """`OPTIONAL` | A pre-obtained access token to use instead of generating one from the client credentials."""
        token = self._file.get("token")
        if token is None or isinstance(token, dict):
            return token
        return {"access_token": str(token)}

    @property
    def token_path(self) -> str | None:
        """`OPTIONAL` | The path of the file to load and save access tokens with."""
        path = self._file.get("token_path")
        if path and not isabs(path):
            path = join(PACKAGE_ROOT, path)
        return path

    @property
    def market(self) -> str | None:
        """`OPTIONAL` | An ISO 3166-1 alpha-2 country code to apply track relinking for."""
        return self._file.get("market")

    @property
    def search_limit(self) -> int:
        """`DEFAULT = 10` | The maximum number of suggestions to get for each category. Limited to ``1``-``50``."""
        if self._search_limit is not None:
            return self._search_limit

        value = self._file.get("search_limit", 10)
        if not isinstance(value, int) or isinstance(value, bool):
            raise ConfigError("Search limit must be an integer: {value}", key="search_limit", value=value)

        self._search_limit = limit_value(value, floor=1, ceil=50)
        return self._search_limit

    def create_catalog(self) -> SpotifyCatalog:
        """Set up and return a new :py:class:`SpotifyCatalog` from these settings"""
        if not (self.client_id and self.client_secret) and not self.token and not self.token_path:
            raise ConfigError("Cannot create catalog without client ID and client secret or an access token")

        return SpotifyCatalog.create(
            client_id=self.client_id,
            client_secret=self.client_secret,
            token=self.token,
            token_file_path=self.token_path,
            search_limit=self.search_limit,
            market=self.market,
        )

    def as_dict(self) -> dict[str, Any]:
        return {
            "client_id": obfuscate(self.client_id),
            "client_secret": "<OBFUSCATED>" if self.client_secret else None,
            "token": "<OBFUSCATED>" if self.token else None,
            "token_path": self.token_path,
            "market": self.market,
            "search_limit": self.search_limit,
        }


class ConfigSelection(BaseConfig):
    """
    Set the settings for selecting collections from a config file.
    See :py:class:`Config` for more documentation regarding operation.

    :param settings: The loaded config from the config file.
    """

    def __init__(self, settings: dict[Any, Any]):
        super().__init__(settings=settings, key="selection")

    @property
    def debounce(self) -> float:
        """`DEFAULT = 0.275` | The time in seconds to wait after the last keystroke before searching."""
        value = self._file.get("debounce", DEBOUNCE_DELAY)
        if not isinstance(value, int | float) or isinstance(value, bool) or value < 0:
            raise ConfigError("Debounce must be a non-negative number of seconds: {value}", key="debounce", value=value)
        return float(value)

    def as_dict(self) -> dict[str, Any]:
        return {"debounce": self.debounce}


class Config(BaseConfig):
    """
    Set up config and provide framework for initialising the objects
    needed for the main functionality of the program from a given config file at ``path``.

    The following options are in place for configuration values:

    - `DEFAULT`: When a value is not found, a default value will be used.
    - `OPTIONAL`: This value does not need to be set and ``None`` will be set when this is the case.
        The configuration will not fail if this value is not given.

    :param path: Path of the config file to use. If relative path given, appends package root path.
    """

    def __init__(self, path: str = "config.yml"):
        super().__init__({})
        self.path = self._make_path_absolute(path)
        self.loaded: bool = False

        self.spotify: ConfigSpotify = ConfigSpotify(settings=self._file)
        self.selection: ConfigSelection = ConfigSelection(settings=self._file)

    def load(self, key: str | None = None) -> None:
        """
        Load config from the config file at the given ``key``.

        :param key: The key to pull config from within the file.
            If not given, use the root values in the config file.
        """
        self._file = self._load_config(key)

        self.spotify = ConfigSpotify(settings=self._file)
        self.selection = ConfigSelection(settings=self._file)
        self.loaded = True

    @staticmethod
    def _make_path_absolute(path: str) -> str:
        """Append the root path to any relative path to make it an absolute path. Do nothing if path is absolute."""
        if not isabs(path):
            path = join(PACKAGE_ROOT, path)
        return str(path)

    def _load_config(self, key: str | None = None) -> dict[Any, Any]:
        """
        Load the config file

        :param key: The key to pull config from within the file.
        :return: The config file.
        :raise ConfigError: When the given config file is not of the correct type, does not exist,
            or the given key cannot be found.
        """
        if splitext(self.path)[1].casefold() not in [".yml", ".yaml"]:
            raise ConfigError("Unrecognised config file type: {value}", value=self.path)
        elif not exists(self.path):
            raise ConfigError("Config file not found: {value}", value=self.path)

        with open(self.path, "r") as file:
            config = yaml.full_load(file) or {}
        if not isinstance(config, dict):
            raise ConfigError("Config file must contain a mapping: {value}", value=self.path)
        if key and key not in config:
            raise ConfigError("Unrecognised config name: {key} | Available: {value}", key=key, value=list(config))

        return config.get(key, config) if key else config

    def configure_logging(self, *names: str) -> None:
        """
        Configure logging from the ``logging`` block of the config file using logging.config.dictConfig.
        Does nothing when no ``logging`` block is set.

        :param names: When given, also apply the config of the package root logger to loggers with these ``names``.
        """
        log_config = deepcopy(self._file.get("logging"))
        if not log_config:
            return

        for formatter in log_config.get("formatters", {}).values():  # ensure ANSI colour codes are recognised
            if "format" in formatter:
                formatter["format"] = formatter["format"].replace(r"\33", "\33")

        loggers = log_config.get("loggers", {})
        if MODULE_ROOT in loggers:
            for name in to_collection(names, tuple):
                loggers[name] = loggers[MODULE_ROOT]

        log_config.setdefault("version", 1)
        logging.config.dictConfig(log_config)
        logging.getLogger(MODULE_ROOT).debug(f"Logging configured from: {self.path}")

    def as_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "spotify": self.spotify.as_dict(),
            "selection": self.selection.as_dict(),
        }
