"""
Configuration management for QueryDeck.

Handles all configuration options including the remote query endpoint,
the optional local database backend, and console preferences.
"""

from dataclasses import dataclass, field
from typing import Optional, Dict, Any
from enum import Enum
import os
import yaml


DEFAULT_BASE_URL = "http://localhost:5001/api"


class DatabaseType(Enum):
    """Supported local database types."""
    POSTGRESQL = "postgresql"
    MYSQL = "mysql"
    SQLITE = "sqlite"


class KeyStyle(Enum):
    """How response keys are presented to the console."""
    RAW = "raw"      # Keys exactly as the endpoint returns them
    CAMEL = "camel"  # PascalCase / snake_case converted to camelCase


@dataclass
class EndpointConfig:
    """Remote query endpoint configuration."""
    base_url: str = DEFAULT_BASE_URL
    token: Optional[str] = None
    timeout: float = 30.0
    key_style: KeyStyle = KeyStyle.RAW

    def __post_init__(self):
        if not self.token:
            self.token = os.environ.get("QUERYDECK_TOKEN")
        if isinstance(self.key_style, str):
            self.key_style = KeyStyle(self.key_style)
        self.base_url = self.base_url.rstrip("/")


@dataclass
class DatabaseConfig:
    """Local database connection configuration."""
    db_type: DatabaseType
    host: Optional[str] = None
    port: Optional[int] = None
    database: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    db_path: Optional[str] = None  # For SQLite
    schema: Optional[str] = None  # For PostgreSQL schema filtering

    def get_connection_string(self) -> str:
        """Generate SQLAlchemy connection string."""
        if self.db_type == DatabaseType.SQLITE:
            return f"sqlite:///{self.db_path}"
        elif self.db_type == DatabaseType.POSTGRESQL:
            auth = f"{self.username}:{self.password}@" if self.username else ""
            return f"postgresql+psycopg2://{auth}{self.host}:{self.port}/{self.database}"
        elif self.db_type == DatabaseType.MYSQL:
            auth = f"{self.username}:{self.password}@" if self.username else ""
            return f"mysql+pymysql://{auth}{self.host}:{self.port}/{self.database}"
        else:
            raise ValueError(f"Unsupported database type: {self.db_type}")


@dataclass
class ConsoleSettings:
    """Query console preferences."""
    page_size: int = 10  # Fixed for the lifetime of a console
    export_dir: str = "./exports"
    delimiter: str = ","
    auto_select_first_table: bool = True

    def __post_init__(self):
        if self.page_size < 1:
            raise ValueError(f"page_size must be a positive integer, got {self.page_size}")
        if not self.delimiter:
            raise ValueError("delimiter must not be empty")


@dataclass
class QueryDeckConfig:
    """Main configuration container."""
    endpoint: EndpointConfig = field(default_factory=EndpointConfig)
    database: Optional[DatabaseConfig] = None  # Set to query a local database instead
    console: ConsoleSettings = field(default_factory=ConsoleSettings)
    verbose: bool = False

    @property
    def uses_local_database(self) -> bool:
        return self.database is not None

    @classmethod
    def from_yaml(cls, path: str) -> "QueryDeckConfig":
        """Load configuration from YAML file."""
        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}
        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: Dict[str, Any]) -> "QueryDeckConfig":
        """Create config from dictionary."""
        endpoint_data = data.get("endpoint", {})
        endpoint_config = EndpointConfig(
            base_url=endpoint_data.get("base_url", DEFAULT_BASE_URL),
            token=endpoint_data.get("token"),
            timeout=endpoint_data.get("timeout", 30.0),
            key_style=KeyStyle(endpoint_data.get("key_style", "raw")),
        )

        db_config = None
        db_data = data.get("database")
        if db_data:
            db_config = DatabaseConfig(
                db_type=DatabaseType(db_data.get("type", "sqlite")),
                host=db_data.get("host"),
                port=db_data.get("port"),
                database=db_data.get("database"),
                username=db_data.get("username"),
                password=db_data.get("password"),
                db_path=db_data.get("path"),
                schema=db_data.get("schema"),
            )

        console_data = data.get("console", {})
        console_settings = ConsoleSettings(
            page_size=console_data.get("page_size", 10),
            export_dir=console_data.get("export_dir", "./exports"),
            delimiter=console_data.get("delimiter", ","),
            auto_select_first_table=console_data.get("auto_select_first_table", True),
        )

        return cls(
            endpoint=endpoint_config,
            database=db_config,
            console=console_settings,
            verbose=data.get("verbose", False),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary. The endpoint token is never included."""
        return {
            "endpoint": {
                "base_url": self.endpoint.base_url,
                "timeout": self.endpoint.timeout,
                "key_style": self.endpoint.key_style.value,
            },
            "database": {
                "type": self.database.db_type.value,
                "host": self.database.host,
                "port": self.database.port,
                "path": self.database.db_path,
            } if self.database else None,
            "console": {
                "page_size": self.console.page_size,
                "export_dir": self.console.export_dir,
                "delimiter": self.console.delimiter,
                "auto_select_first_table": self.console.auto_select_first_table,
            },
            "verbose": self.verbose,
        }


def create_default_config(
    base_url: Optional[str] = None,
    token: Optional[str] = None,
    db_path: Optional[str] = None,
    page_size: int = 10,
    export_dir: str = "./exports",
    verbose: bool = False,
) -> QueryDeckConfig:
    """Factory function to create a default configuration."""

    endpoint_config = EndpointConfig(
        base_url=base_url or DEFAULT_BASE_URL,
        token=token,
    )

    db_config = None
    if db_path:
        db_config = DatabaseConfig(db_type=DatabaseType.SQLITE, db_path=db_path)

    return QueryDeckConfig(
        endpoint=endpoint_config,
        database=db_config,
        console=ConsoleSettings(page_size=page_size, export_dir=export_dir),
        verbose=verbose,
    )
