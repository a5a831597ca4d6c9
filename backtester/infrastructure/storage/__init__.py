"""
Result storage infrastructure.
"""

from .result_store import ResultStore

__all__ = ["ResultStore"]
