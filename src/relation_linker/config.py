"""Configuration of the relation endpoints, read from YAML files."""

import dataclasses
import logging
import pathlib
import typing

import structlog
import yaml

logger = structlog.get_logger()


def configure_logging(log_level: str) -> None:
    """Configure structlog with the specified log level."""
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(
            min_level=logging.getLevelName(log_level.upper())
        )
    )


@dataclasses.dataclass(frozen=True)
class LinkerConfig:
    """
    Settings shared by every relation endpoint.

    :param str base_url: The prefix of the external identifiers, and of the routes.
    :param bool require_existing_on_remove: Whether a child must still exist to be unlinked.
    :param bool lock_owner_rows: Whether owners are loaded with ``SELECT ... FOR UPDATE``.
    :param str database_url: The SQLAlchemy URL of the store.
    :param str log_level: The minimum level of the emitted log events.
    """

    base_url: str = "/api/v2"
    require_existing_on_remove: bool = True
    lock_owner_rows: bool = False
    database_url: str = "sqlite://"
    log_level: str = "info"

    def __post_init__(self):
        if not isinstance(logging.getLevelName(self.log_level.upper()), int):
            raise ValueError(f"log_level must be a logging level name, got {self.log_level!r}")

    @classmethod
    def from_mapping(cls, values: typing.Mapping[str, typing.Any]) -> "LinkerConfig":
        known = {f.name: f for f in dataclasses.fields(cls)}
        unknown = sorted(set(values) - set(known))
        if unknown:
            raise ValueError(f"unknown configuration keys: {', '.join(unknown)}")
        for k, v in values.items():
            expected = bool if known[k].type in (bool, "bool") else str
            if not isinstance(v, expected):
                raise ValueError(f"{k} must be a {expected.__name__}, got {v!r}")
        return cls(**values)

    @classmethod
    def load(cls, path: typing.Union[str, pathlib.Path]) -> "LinkerConfig":
        """
        Loads the configuration from a YAML file.  Missing keys take their default values.
        """
        path = pathlib.Path(path)
        try:
            with open(path, "r") as f:
                values = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.error("Failed to load config", path=str(path), error=str(e))
            raise ValueError(f"Failed to load config from {path}: {e}") from e
        if not isinstance(values, dict):
            raise ValueError(f"Failed to load config from {path}: not a mapping")
        logger.debug("Config loaded", path=str(path), keys=sorted(values))
        return cls.from_mapping(values)
