from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Sequence


class QueryExecutionInterface(ABC):
    """Abstract base class for query execution."""

    @abstractmethod
    def execute_query(self,
                      query: str,
                      parameters: Optional[Sequence[Optional[str]]] = None,
                      timeout_ms: Optional[int] = None,
                      max_rows: Optional[int] = None) -> Any:
        """Execute a read-only SQL query.

        Args:
            query (str): SQL query to execute.
            parameters (Optional[Sequence[Optional[str]]]): Positional bind parameters.
            timeout_ms (Optional[int]): Statement timeout in milliseconds.
            max_rows (Optional[int]): Maximum number of rows to return.

        Returns:
            Any: Query result.
        """
        pass

    @abstractmethod
    def get_pool_stats(self) -> Dict[str, Any]:
        """Get occupancy statistics of the underlying connection pool."""
        pass
