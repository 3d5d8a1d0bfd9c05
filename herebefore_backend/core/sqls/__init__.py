"""
SQL statements module
Provides centralized SQL statement management for better maintainability
"""

from . import queries, schema

__all__ = ["schema", "queries"]
