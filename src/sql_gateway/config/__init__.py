# src/sql_gateway/config/__init__.py
from .base_config import BaseConfig
from .logging_config import LoggingConfig
from .sql_config import SqlApiConfig

__all__ = [
    'BaseConfig',
    'LoggingConfig',
    'SqlApiConfig'
]
