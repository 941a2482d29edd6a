import os
import sys
# Go up three directory levels (config -> unit -> tests -> project root)
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../../../')))
# Import the setup script
import setup_path

import unittest
from unittest.mock import patch

from sql_gateway.config.logging_config import LoggingConfig


class TestLoggingConfig(unittest.TestCase):
    """Test cases for the LoggingConfig class."""

    @patch.dict(os.environ, {"LOG_LEVEL": "debug", "LOG_FILE_ENABLED": "false"}, clear=True)
    def test_console_only(self):
        """Test the document when file logging is disabled."""
        config = LoggingConfig()
        config.load_config(defaults=LoggingConfig.DEFAULTS)
        document = config.build_dict_config()

        self.assertEqual(list(document["handlers"]), ["console"])
        self.assertEqual(document["handlers"]["console"]["level"], "DEBUG")
        self.assertNotIn("sql_gateway.audit", document["loggers"])

    @patch.dict(os.environ, {"LOG_DIR": "/tmp/gateway-logs"}, clear=True)
    def test_file_handlers(self):
        """Test the rotating files and the audit logger."""
        config = LoggingConfig()
        config.load_config(defaults=LoggingConfig.DEFAULTS)
        document = config.build_dict_config()

        self.assertEqual(document["handlers"]["audit_file"]["filename"], "/tmp/gateway-logs/sql_audit.log")
        self.assertEqual(document["loggers"]["sql_gateway.audit"]["handlers"], ["audit_file"])
        self.assertEqual(document["loggers"]["sqlalchemy.engine"]["level"], "WARNING")


if __name__ == '__main__':
    unittest.main()
