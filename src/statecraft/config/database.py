"""Database connection settings."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError

from .env import bool_env_var, optional_env_var
from .errors import ConfigurationError

DATABASE_URI_ENV: Final[str] = "DATABASE_URI"
DATABASE_ECHO_ENV: Final[str] = "STATECRAFT_DATABASE_ECHO"
DEFAULT_DATABASE_URI: Final[str] = "sqlite+pysqlite:///statecraft.db"


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    """Where the SQL store lives; ``echo`` turns on SQLAlchemy statement logging."""

    uri: str = DEFAULT_DATABASE_URI
    echo: bool = False

    def __post_init__(self) -> None:
        try:
            make_url(self.uri)
        except ArgumentError as exc:
            raise ConfigurationError(
                f"Invalid database URI: {self.uri!r}", setting=DATABASE_URI_ENV
            ) from exc

    @property
    def backend_name(self) -> str:
        return make_url(self.uri).get_backend_name()


def get_database_config() -> DatabaseConfig:
    return DatabaseConfig(
        uri=optional_env_var(DATABASE_URI_ENV) or DEFAULT_DATABASE_URI,
        echo=bool_env_var(DATABASE_ECHO_ENV, default=False),
    )
