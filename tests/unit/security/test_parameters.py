import os
import sys
# Go up three directory levels (security -> unit -> tests -> project root)
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../../../')))
# Import the setup script
import setup_path

import unittest

from sql_gateway.security.parameters import sanitize_parameters
from sql_gateway.core.exceptions.custom_exceptions import ParameterValidationError


class TestSanitizeParameters(unittest.TestCase):
    """Test cases for the parameter sanitizer."""

    def test_non_list_becomes_empty(self):
        """Test that anything but a list is discarded."""
        for params in [None, "a", 5, {"a": 1}]:
            self.assertEqual(sanitize_parameters(params), [])

    def test_values_converted_to_text(self):
        """Test string conversion of JSON values."""
        sanitized = sanitize_parameters(["abc", 5, 2.5, 3.0, True, False, None])

        self.assertEqual(sanitized, ["abc", "5", "2.5", "3", "true", "false", None])

    def test_nested_values_rendered_as_json(self):
        """Test that objects and arrays keep their JSON form."""
        sanitized = sanitize_parameters([{"a": 1}, [1, 2]])

        self.assertEqual(sanitized, ['{"a":1}', '[1,2]'])

    def test_order_preserved(self):
        """Test that positions are kept for $n binding."""
        self.assertEqual(sanitize_parameters(["b", "a", "c"]), ["b", "a", "c"])

    def test_parameter_too_long(self):
        """Test the per-parameter length limit."""
        with self.assertRaises(ParameterValidationError) as context:
            sanitize_parameters(["ok", "x" * 1001])

        self.assertEqual(context.exception.index, 1)
        self.assertIn("1000 characters", context.exception.get_user_message())

    def test_parameter_at_limit(self):
        """Test that exactly 1000 characters is accepted."""
        self.assertEqual(sanitize_parameters(["x" * 1000]), ["x" * 1000])


if __name__ == '__main__':
    unittest.main()
