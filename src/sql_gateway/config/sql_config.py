# src/sql_gateway/config/sql_config.py
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from sql_gateway.config.base_config import BaseConfig

# Hard bounds accepted from clients, independent of the configured defaults
MIN_TIMEOUT_MS = 1000
MAX_TIMEOUT_MS = 300000
MIN_ROWS = 1
MAX_ROWS = 10000


class SqlApiConfig(BaseConfig):
    """
    Settings of the SQL query API: rate limiting, execution limits and the
    two-tier complexity policy. Values come from defaults, an optional
    JSON/YAML file and the environment, in that order.
    """

    DEFAULTS: Dict[str, Any] = {
        "sql_rate_limit_window": 900000,
        "sql_rate_limit_max": 20,
        "sql_query_timeout": 30000,
        "sql_max_rows": 1000,
        "sql_complexity_warn_threshold": 10,
        "sql_complexity_reject_threshold": 20,
        "sql_max_request_bytes": 50 * 1024,
        "rate_limit_window_ms": 900000,
        "rate_limit_max_requests": 100,
        "allowed_origins": "http://localhost:3000,http://127.0.0.1:3000,http://localhost:8080,http://127.0.0.1:8080",
        "api_port": 8000,
    }

    def __init__(self,
                 overrides: Optional[Dict[str, Any]] = None,
                 config_file: Optional[Union[str, Path]] = None,
                 env_override: bool = True):
        """
        Load the SQL API configuration.

        Args:
            overrides (Optional[Dict[str, Any]]): Values applied last, mostly for tests
            config_file (Optional[Union[str, Path]]): JSON or YAML file with settings
            env_override (bool): Whether environment variables are read
        """
        super().__init__("sql_api")
        self.load_config(defaults=self.DEFAULTS, config_file=config_file, env_override=env_override)

        for key, value in (overrides or {}).items():
            self.set(key.lower(), value)

        if self.complexity_warn_threshold > self.complexity_reject_threshold:
            raise ValueError(
                "SQL_COMPLEXITY_WARN_THRESHOLD must not exceed SQL_COMPLEXITY_REJECT_THRESHOLD"
            )

    def _int(self, key: str) -> int:
        return self.get_int(key, self.DEFAULTS[key])

    @property
    def rate_limit_window_ms(self) -> int:
        return self._int("sql_rate_limit_window")

    @property
    def rate_limit_max(self) -> int:
        return self._int("sql_rate_limit_max")

    @property
    def query_timeout_ms(self) -> int:
        return min(max(self._int("sql_query_timeout"), MIN_TIMEOUT_MS), MAX_TIMEOUT_MS)

    @property
    def max_rows(self) -> int:
        return min(max(self._int("sql_max_rows"), MIN_ROWS), MAX_ROWS)

    @property
    def complexity_warn_threshold(self) -> int:
        return self._int("sql_complexity_warn_threshold")

    @property
    def complexity_reject_threshold(self) -> int:
        return self._int("sql_complexity_reject_threshold")

    @property
    def max_request_bytes(self) -> int:
        return self._int("sql_max_request_bytes")

    @property
    def api_rate_limit_window_ms(self) -> int:
        return self._int("rate_limit_window_ms")

    @property
    def api_rate_limit_max(self) -> int:
        return self._int("rate_limit_max_requests")

    @property
    def allowed_origins(self) -> List[str]:
        return self.get_list("allowed_origins", self.DEFAULTS["allowed_origins"].split(","))

    @property
    def api_port(self) -> int:
        return self._int("api_port")
