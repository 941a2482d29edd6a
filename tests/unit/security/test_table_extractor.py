import os
import sys
# Go up three directory levels (security -> unit -> tests -> project root)
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../../../')))
# Import the setup script
import setup_path

import unittest

from sql_gateway.security.table_extractor import extract_table_names


class TestExtractTableNames(unittest.TestCase):
    """Test cases for the table reference extractor."""

    def test_from_and_join(self):
        """Test names after FROM and JOIN in order of appearance."""
        tables = extract_table_names(
            "SELECT * FROM orders o JOIN customers c ON c.id = o.customer_id LEFT JOIN items i ON i.id = o.id"
        )
        self.assertEqual(tables, ["orders", "customers", "items"])

    def test_case_insensitive_keywords_and_duplicates(self):
        """Test keyword case and case-insensitive de-duplication."""
        tables = extract_table_names("select * from Users join users on 1 = 1 JOIN Orders on 1 = 1")
        self.assertEqual(tables, ["Users", "Orders"])

    def test_no_tables(self):
        """Test queries without table references."""
        self.assertEqual(extract_table_names("SELECT 1"), [])
        self.assertEqual(extract_table_names(""), [])


if __name__ == '__main__':
    unittest.main()
