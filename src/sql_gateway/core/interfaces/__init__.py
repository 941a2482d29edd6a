from .query_interface import QueryExecutionInterface

__all__ = ['QueryExecutionInterface']
