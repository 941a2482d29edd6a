# src/sql_gateway/database/config.py
from typing import Dict, Any, List, Optional

from sqlalchemy.engine import URL

from sql_gateway.config.base_config import BaseConfig
from sql_gateway.core.exceptions.custom_exceptions import DatabaseConnectionError


class DatabaseConfig(BaseConfig):
    """
    PostgreSQL connection settings read from ``POSTGRES_*`` environment variables.

    Host, port, database, user and password are required. Their absence only
    disables the SQL API; the rest of the application keeps running.
    """

    POSTGRES = "postgresql+psycopg2"

    REQUIRED_KEYS = ("host", "port", "db", "user", "password")

    DEFAULTS: Dict[str, Any] = {
        "host": None,
        "port": None,
        "db": None,
        "user": None,
        "password": None,
        "max_connections": "10",
        "idle_timeout": "30000",
        "connection_timeout": "10000",
        "ssl": "false",
    }

    def __init__(self, env_prefix: str = "POSTGRES"):
        """
        Initialize database configuration.

        Args:
            env_prefix (str): Prefix for environment variables
        """
        # Raw strings: passwords such as "1234" or "true" must not be converted
        super().__init__("database", env_prefix, parse_values=False)
        self.load_config(defaults=self.DEFAULTS)

    def _var(self, key: str) -> str:
        return f"{self.env_prefix}_{key.upper()}"

    def get_missing_variables(self) -> List[str]:
        """
        List required environment variables that are not set.

        Returns:
            List[str]: Missing variable names
        """
        return [self._var(key) for key in self.REQUIRED_KEYS if not self.get(key)]

    @classmethod
    def get_connection_url(
            cls,
            username: str,
            password: str,
            host: str,
            port: Optional[int],
            database: str,
            drivername: Optional[str] = None
    ) -> URL:
        """
        Build a SQLAlchemy URL for PostgreSQL.

        Args:
            username (str): Database username
            password (str): Database password
            host (str): Database host
            port (Optional[int]): Database port
            database (str): Database name
            drivername (Optional[str]): SQLAlchemy dialect+driver

        Returns:
            URL: Connection URL with the password escaped
        """
        if not all([username, password, host, database]):
            raise ValueError("Missing required connection parameters")

        return URL.create(
            drivername=drivername or cls.POSTGRES,
            username=username,
            password=password,
            host=host,
            port=port or 5432,
            database=database
        )

    def get_connection_url_from_env(self) -> URL:
        """
        Build the connection URL from environment variables.

        Returns:
            URL: Connection URL

        Raises:
            DatabaseConnectionError: If required environment variables are missing
        """
        missing = self.get_missing_variables()
        if missing:
            raise DatabaseConnectionError(
                f"Missing required PostgreSQL environment variables: {', '.join(missing)}",
                error_code="DB_CONFIG_MISSING"
            )

        try:
            port = int(self.get("port"))
        except ValueError:
            raise DatabaseConnectionError(
                f"Invalid port number: {self.get('port')}",
                error_code="DB_CONFIG_INVALID"
            )

        return self.get_connection_url(
            username=self.get("user"),
            password=self.get("password"),
            host=self.get("host"),
            port=port,
            database=self.get("db")
        )

    def get_pool_args(self) -> Dict[str, Any]:
        """
        Get connection pool arguments for ``ConnectionPool``.

        Returns:
            Dict[str, Any]: Pool size and timeouts
        """
        return {
            "max_connections": max(1, self.get_int("max_connections", 10)),
            "idle_timeout_ms": self.get_int("idle_timeout", 30000),
            "acquire_timeout_ms": self.get_int("connection_timeout", 10000),
        }

    def get_connect_args(self) -> Dict[str, Any]:
        """
        Get driver connect arguments.

        Returns:
            Dict[str, Any]: psycopg2 connect arguments
        """
        connect_args: Dict[str, Any] = {
            "connect_timeout": max(1, self.get_int("connection_timeout", 10000) // 1000)
        }
        if str(self.get("ssl", "false")).lower() in ("true", "yes", "1", "require"):
            connect_args["sslmode"] = "require"
        return connect_args
