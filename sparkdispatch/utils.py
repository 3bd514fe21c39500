"""Module for general logging functionalities and abstractions."""

from __future__ import annotations

import json
import logging
import os
import re
from contextlib import contextmanager
from logging import Logger, config, getLogger
from typing import Any, Callable

from envyaml import EnvYAML
from typing_extensions import Self

DEFAULT_LOGGING_FILE = os.path.join(
    os.path.dirname(__file__), "resources", "logging.yaml"
)


def config_from_json(path_to_file: str = DEFAULT_LOGGING_FILE) -> None:
    """
    Configure logger from json.

    :param path_to_file: path to configuration file

    :type path_to_file: str

    :return: configuration for logger
    """
    with open(path_to_file, "rt") as fid:
        configFile = json.load(fid)
    config.dictConfig(configFile)


def config_from_yaml(path_to_file: str = DEFAULT_LOGGING_FILE) -> None:
    """
    Configure logger from yaml.

    :param path_to_file: path to configuration file

    :type path_to_file: str

    :return: configuration for logger
    """
    config.dictConfig(dict(EnvYAML(path_to_file, strict=False)))


def config_from_file(path_to_file: str = DEFAULT_LOGGING_FILE) -> None:
    """
    Configure logger from file.

    :param path_to_file: path to configuration file

    :type path_to_file: str

    :return: configuration for logger
    """
    readers = {
        ".yml": config_from_yaml,
        ".yaml": config_from_yaml,
        ".json": config_from_json,
    }

    _, file_extension = os.path.splitext(path_to_file)

    if file_extension not in readers.keys():
        raise NotImplementedError(
            f"Reader for file extension {file_extension} is not supported"
        )

    return readers[file_extension](path_to_file)


class WithLogging:
    """Base class to be used for providing a logger embedded in the class."""

    @property
    def logger(self) -> Logger:
        """Create logger.

        :return: default logger.
        """
        nameLogger = str(self.__class__).replace("<class '", "").replace("'>", "")
        return getLogger(nameLogger)


def setup_logging(
    log_level: str, config_file: str | None = None, logger_name: str | None = None
) -> logging.Logger:
    """Set up logging from configuration file."""
    with environ(LOG_LEVEL=log_level) as _:
        config_from_file(config_file or DEFAULT_LOGGING_FILE)
    return logging.getLogger(logger_name) if logger_name else logging.root


@contextmanager
def environ(*remove, **update):
    """
    Temporarily updates the ``os.environ`` dictionary in-place.

    The ``os.environ`` dictionary is updated in-place so that the modification
    is sure to work in all situations.

    :param remove: Environment variables to remove.
    :param update: Dictionary of environment variables and values to add/update.
    """
    env = os.environ
    update = update or {}
    remove = remove or []

    # List of environment variables being updated or removed.
    stomped = (set(update.keys()) | set(remove)) & set(env.keys())
    # Environment variables and values to restore on exit.
    update_after = {k: env[k] for k in stomped}
    # Environment variables and values to remove on exit.
    remove_after = frozenset(k for k in update if k not in env)

    try:
        [env.pop(k, None) for k in remove]
        env.update(update)
        yield
    finally:
        [env.pop(k) for k in remove_after]
        env.update(update_after)


def stringify(value: Any) -> str:
    """Render a property value the way Spark expects it in a properties map."""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def join_csv(*values: str | None) -> str:
    """Comma-join non-empty values, flattening values that are already comma separated.

    Repeated entries are kept once, at their first position.
    """
    return ",".join(
        dict.fromkeys(
            item
            for value in values
            if value
            for item in value.split(",")
            if item.strip()
        )
    )


class PropertyFile(WithLogging):
    """Ordered collection of Spark properties.

    Keys are unique and keep their first insertion position; adding two
    PropertyFile objects returns a new one where the right-hand side wins.
    """

    _line_pattern = re.compile(r"^\s*([^=\s]+)\s*(?:=|\s)\s*(.*?)\s*$")

    def __init__(self, props: dict[str, Any]):
        """Initialize a PropertyFile from a dictionary of properties.

        Args:
            props: mapping of property keys to values. Values are stringified.
        """
        self.props: dict[str, str] = {k: stringify(v) for k, v in props.items()}

    @classmethod
    def empty(cls) -> Self:
        """Return an empty property file."""
        return cls({})

    @staticmethod
    def is_line_parsable(line: str) -> bool:
        """Check whether a line can be parsed as a property."""
        stripped = line.strip()
        return (
            len(stripped) > 0
            and not stripped.startswith("#")
            and PropertyFile._line_pattern.match(stripped) is not None
        )

    @staticmethod
    def parse_property_line(line: str) -> tuple[str, str]:
        """Parse a 'key=value' (or 'key value') line into a key-value pair."""
        match = PropertyFile._line_pattern.match(line.strip())
        if match is None:
            raise ValueError(f"Line '{line}' is not a property definition")
        return match.group(1), match.group(2)

    @classmethod
    def read(cls, filename: str) -> Self:
        """Read a property file from disk, skipping empty and comment lines."""
        with open(filename, "r") as fid:
            return cls(
                dict(
                    cls.parse_property_line(line)
                    for line in fid.readlines()
                    if cls.is_line_parsable(line)
                )
            )

    def log(self, log_func: Callable[[str], None] | None = None) -> Self:
        """Log all properties, one line per property."""
        _log = log_func or self.logger.info
        for k, v in self.props.items():
            _log(f"{k}={v}")
        return self

    def get(self, key: str, default: str | None = None) -> str | None:
        """Return the value of a property, or the default when missing."""
        return self.props.get(key, default)

    def __contains__(self, key: object) -> bool:
        """Check whether a property is defined."""
        return key in self.props

    def __len__(self) -> int:
        """Number of properties."""
        return len(self.props)

    def __eq__(self, other: object) -> bool:
        """Equality on the property values."""
        if not isinstance(other, PropertyFile):
            return NotImplemented
        return self.props == other.props

    def __add__(self, other: PropertyFile) -> Self:
        """Merge two property files, with the right-hand side taking precedence."""
        return type(self)({**self.props, **other.props})

    def __repr__(self) -> str:
        """Repr representation."""
        return f"{type(self).__name__}({self.props!r})"
