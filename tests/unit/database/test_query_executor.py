import os
import sys
# Go up three directory levels (database -> unit -> tests -> project root)
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../../../')))
# Import the setup script
import setup_path

import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch, MagicMock

import sqlalchemy as sa
from sqlalchemy.exc import OperationalError

from sql_gateway.database.connection_pool import ConnectionPool
from sql_gateway.database.query_executor import QueryExecutor, QueryResult, bind_positional_parameters
from sql_gateway.core.exceptions.custom_exceptions import QueryExecutionError


class TestBindPositionalParameters(unittest.TestCase):
    """Test cases for $n placeholder binding."""

    def test_placeholders_rewritten(self):
        """Test that $n becomes a named bind parameter."""
        statement, values = bind_positional_parameters(
            "SELECT * FROM t WHERE a = $1 AND b = $2 OR c = $1", ["x", None]
        )

        self.assertEqual(str(statement), "SELECT * FROM t WHERE a = :p1 AND b = :p2 OR c = :p1")
        self.assertEqual(values, {"p1": "x", "p2": None})

    def test_no_placeholders(self):
        """Test queries without parameters."""
        statement, values = bind_positional_parameters("SELECT 1", [])

        self.assertEqual(str(statement), "SELECT 1")
        self.assertEqual(values, {})

    def test_placeholders_inside_literals_untouched(self):
        """Test that quoted text keeps dollar signs and colons."""
        statement, _ = bind_positional_parameters(
            "SELECT 'costs $5' AS price, ':tag' AS tag, \"a:b\" FROM t WHERE x = $1", ["v"]
        )

        self.assertEqual(
            str(statement),
            "SELECT 'costs $5' AS price, ':tag' AS tag, \"a:b\" FROM t WHERE x = :p1"
        )
        self.assertEqual(list(statement.compile().params), ["p1"])

    def test_escaped_quote_inside_literal(self):
        """Test that a doubled quote does not end the literal."""
        statement, _ = bind_positional_parameters("SELECT 'it''s $2' AS x WHERE y = $1", ["v"])

        self.assertEqual(list(statement.compile().params), ["p1"])

    def test_placeholder_followed_by_cast(self):
        """Test a PostgreSQL cast directly after a placeholder."""
        statement, _ = bind_positional_parameters("SELECT $1::int AS n, created_at::date FROM t", ["1"])

        self.assertEqual(str(statement), "SELECT (:p1)::int AS n, created_at::date FROM t")
        self.assertEqual(list(statement.compile().params), ["p1"])


class TestQueryExecutor(unittest.TestCase):
    """Test cases for the QueryExecutor class against a SQLite file database."""

    def setUp(self):
        """Set up test environment before each test."""
        self.temp_dir = tempfile.TemporaryDirectory()
        db_url = f"sqlite:///{Path(self.temp_dir.name) / 'executor.db'}"
        self.pool = ConnectionPool(db_url, max_connections=2)

        with self.pool.engine.begin() as conn:
            conn.execute(sa.text("CREATE TABLE users (id INTEGER PRIMARY KEY, name TEXT, email TEXT)"))
            for i in range(1, 11):
                conn.execute(
                    sa.text("INSERT INTO users (id, name, email) VALUES (:id, :name, :email)"),
                    {"id": i, "name": f"user{i}", "email": f"user{i}@example.com"}
                )

        self.executor = QueryExecutor(self.pool, default_max_rows=1000)

    def tearDown(self):
        """Clean up after each test."""
        self.pool.dispose()
        self.temp_dir.cleanup()

    def _active_connections(self):
        return self.pool.get_stats()["activeCount"]

    def test_execute_query(self):
        """Test a plain query."""
        result = self.executor.execute_query("SELECT id, name FROM users ORDER BY id")

        self.assertIsInstance(result, QueryResult)
        self.assertEqual(result.row_count, 10)
        self.assertEqual(result.first(), {"id": 1, "name": "user1"})
        self.assertEqual([field["name"] for field in result.fields], ["id", "name"])
        self.assertFalse(result.truncated)
        self.assertIsInstance(result.execution_time_ms, int)
        self.assertEqual(result.fields[0]["name"], "id")

    def test_execute_query_with_parameters(self):
        """Test positional parameter binding."""
        result = self.executor.execute_query(
            "SELECT email FROM users WHERE name = $1 OR name = $2 ORDER BY id", ["user2", "user4"]
        )

        self.assertEqual(result.rows, [{"email": "user2@example.com"}, {"email": "user4@example.com"}])

    def test_parameters_are_not_interpolated(self):
        """Test that parameter values are bound, not spliced into the SQL."""
        result = self.executor.execute_query(
            "SELECT id FROM users WHERE name = $1", ["user1' OR '1'='1"]
        )

        self.assertEqual(result.row_count, 0)

    def test_truncation(self):
        """Test that rows beyond max_rows are dropped."""
        result = self.executor.execute_query("SELECT id FROM users ORDER BY id", max_rows=3)

        self.assertTrue(result.truncated)
        self.assertEqual(result.row_count, 3)
        self.assertEqual([row["id"] for row in result.rows], [1, 2, 3])

    def test_exact_row_count_is_not_truncated(self):
        """Test the boundary of the row limit."""
        result = self.executor.execute_query("SELECT id FROM users", max_rows=10)

        self.assertFalse(result.truncated)
        self.assertEqual(result.row_count, 10)

    def test_syntax_error_is_sanitized(self):
        """Test that driver syntax errors get the fixed phrase."""
        with self.assertRaises(QueryExecutionError) as context:
            self.executor.execute_query("SELEC id FROM users")

        self.assertEqual(context.exception.category, "syntax")
        self.assertEqual(context.exception.error_message, "SQL syntax error in query")
        self.assertEqual(self._active_connections(), 0)

    def test_missing_table(self):
        """Test errors about unknown tables."""
        with self.assertRaises(QueryExecutionError) as context:
            self.executor.execute_query("SELECT * FROM missing")

        self.assertEqual(context.exception.category, "missing_relation")
        self.assertEqual(self._active_connections(), 0)

    def test_no_connection_leak_after_repeated_failures(self):
        """Test that failures never keep connections checked out."""
        for _ in range(5):
            with self.assertRaises(QueryExecutionError):
                self.executor.execute_query("SELECT * FROM missing")

        # The pool holds two connections; more queries would block on a leak
        self.assertEqual(self.executor.execute_query("SELECT id FROM users").row_count, 10)
        self.assertEqual(self._active_connections(), 0)

    def test_timeout_releases_connection(self):
        """Test that a statement timeout is reported and the connection returned."""
        timeout_error = OperationalError(
            "SET statement_timeout", {}, Exception("canceling statement due to statement timeout")
        )

        with patch.object(QueryExecutor, "_apply_statement_timeout", side_effect=timeout_error):
            with self.assertRaises(QueryExecutionError) as context:
                self.executor.execute_query("SELECT id FROM users", timeout_ms=1000)

        self.assertEqual(context.exception.category, "timeout")
        self.assertEqual(context.exception.error_message, "Query execution timeout")
        self.assertEqual(self._active_connections(), 0)

    def test_statement_timeout_only_on_postgres(self):
        """Test that SET statement_timeout is only sent to PostgreSQL."""
        conn = MagicMock()
        conn.dialect.name = "sqlite"
        self.executor._apply_statement_timeout(conn, 5000)
        conn.execute.assert_not_called()

        conn.dialect.name = "postgresql"
        self.executor._apply_statement_timeout(conn, 5000)
        statement = conn.execute.call_args[0][0]
        self.assertEqual(str(statement), "SET statement_timeout = 5000")

    def test_literal_colon_and_dollar(self):
        """Test string literals that look like bind parameters."""
        self.assertEqual(self.executor.execute_query("SELECT ':tag' AS x").rows, [{"x": ":tag"}])
        self.assertEqual(self.executor.execute_query("SELECT 'costs $5' AS x").rows, [{"x": "costs $5"}])

    def test_literal_placeholder_next_to_real_one(self):
        """Test that only placeholders outside literals are bound."""
        result = self.executor.execute_query(
            "SELECT '$1' AS literal, name FROM users WHERE id = $1", ["3"]
        )

        self.assertEqual(result.rows, [{"literal": "$1", "name": "user3"}])

    def test_missing_parameter_value_hides_statement(self):
        """Test that a placeholder without a value fails with a clean message."""
        with self.assertRaises(QueryExecutionError) as context:
            self.executor.execute_query("SELECT id FROM users WHERE name = $2", ["user1"])

        message = context.exception.error_message
        self.assertIn("p2", message)
        self.assertNotIn("[SQL", message)
        self.assertNotIn("sqlalche.me", message)
        self.assertEqual(self._active_connections(), 0)

    def test_test_connection(self):
        """Test the connectivity check."""
        outcome = self.executor.test_connection()

        self.assertTrue(outcome["success"])
        self.assertIsNotNone(outcome["version"])
        self.assertIsNotNone(outcome["timestamp"])
        self.assertEqual(outcome["poolStats"]["activeCount"], 0)

    def test_test_connection_failure(self):
        """Test the connectivity check when the database rejects it."""
        error = OperationalError("SELECT", {}, Exception("could not connect to server"))

        with patch.object(QueryExecutor, "_apply_statement_timeout", side_effect=error):
            outcome = self.executor.test_connection()

        self.assertFalse(outcome["success"])
        self.assertEqual(outcome["error"], "Database connection error")


if __name__ == '__main__':
    unittest.main()
