# src/sql_gateway/config/logging_config.py
import logging
import logging.config
from pathlib import Path
from typing import Any, Dict, Optional, Union

from sql_gateway.config.base_config import BaseConfig


class LoggingConfig(BaseConfig):
    """
    Configuration for application logging.
    Supports different log levels, formats, and outputs.

    Environment variables (prefix ``LOG_``):
        LOG_LEVEL         console level (default INFO)
        LOG_DIR           directory of the rotating log files (default ``logs``)
        LOG_FILE_ENABLED  write rotating log files (default true)
    """

    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARNING = logging.WARNING
    ERROR = logging.ERROR
    CRITICAL = logging.CRITICAL

    DEFAULT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    DETAILED_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(pathname)s:%(lineno)d - %(message)s'

    DEFAULTS = {
        'level': 'INFO',
        'dir': 'logs',
        'file_enabled': True,
    }

    def __init__(self, env_prefix: str = "LOG"):
        """
        Initialize logging configuration.

        Args:
            env_prefix (str): Prefix for environment variables
        """
        super().__init__("logging", env_prefix)

    def build_dict_config(self) -> Dict[str, Any]:
        """
        Build the ``logging.config.dictConfig`` document from the loaded settings.

        Returns:
            Dict[str, Any]: dictConfig document
        """
        level = str(self.get('level', 'INFO')).upper()
        log_dir = Path(str(self.get('dir', 'logs')))

        handlers: Dict[str, Any] = {
            'console': {
                'class': 'logging.StreamHandler',
                'level': level,
                'formatter': 'standard',
                'stream': 'ext://sys.stdout'
            }
        }

        if self.get('file_enabled', True):
            handlers['file'] = {
                'class': 'logging.handlers.RotatingFileHandler',
                'level': 'DEBUG',
                'formatter': 'detailed',
                'filename': str(log_dir / 'app.log'),
                'maxBytes': 10485760,  # 10MB
                'backupCount': 5
            }
            handlers['error_file'] = {
                'class': 'logging.handlers.RotatingFileHandler',
                'level': 'ERROR',
                'formatter': 'detailed',
                'filename': str(log_dir / 'error.log'),
                'maxBytes': 10485760,  # 10MB
                'backupCount': 5
            }
            # Audit trail gets its own file
            handlers['audit_file'] = {
                'class': 'logging.handlers.RotatingFileHandler',
                'level': 'INFO',
                'formatter': 'standard',
                'filename': str(log_dir / 'sql_audit.log'),
                'maxBytes': 10485760,  # 10MB
                'backupCount': 5
            }

        loggers: Dict[str, Any] = {
            '': {  # root logger
                'handlers': [name for name in ('console', 'file', 'error_file') if name in handlers],
                'level': 'DEBUG',
                'propagate': True
            },
            'sqlalchemy.engine': {
                'level': 'WARNING'
            }
        }
        if 'audit_file' in handlers:
            loggers['sql_gateway.audit'] = {
                'handlers': ['audit_file'],
                'level': 'INFO',
                'propagate': True
            }

        return {
            'version': 1,
            'disable_existing_loggers': False,
            'formatters': {
                'standard': {
                    'format': self.DEFAULT_FORMAT
                },
                'detailed': {
                    'format': self.DETAILED_FORMAT
                }
            },
            'handlers': handlers,
            'loggers': loggers
        }

    def configure(self, config_file: Optional[Union[str, Path]] = None) -> None:
        """
        Configure logging system.

        Args:
            config_file (Optional[Union[str, Path]]): Path to logging configuration file
        """
        self.load_config(
            defaults=self.DEFAULTS,
            config_file=config_file,
            env_override=True
        )

        dict_config = self.build_dict_config()

        # Create logs directory if it doesn't exist
        if 'file' in dict_config['handlers']:
            Path(str(self.get('dir', 'logs'))).mkdir(parents=True, exist_ok=True)

        logging.config.dictConfig(dict_config)

        logging.getLogger(__name__).info(f"Logging configured with level: {self.get('level', 'INFO')}")

    def set_level(self, logger_name: str = '', level: Union[int, str] = logging.INFO) -> None:
        """
        Set log level for a specific logger.

        Args:
            logger_name (str): Logger name (empty for root logger)
            level (Union[int, str]): Log level (can be name or level number)
        """
        if isinstance(level, str):
            level = getattr(logging, level.upper(), logging.INFO)

        logging.getLogger(logger_name).setLevel(level)

    def get_logger(self, name: str) -> logging.Logger:
        """
        Get a logger with the specified name.

        Args:
            name (str): Logger name

        Returns:
            logging.Logger: Configured logger
        """
        return logging.getLogger(name)
