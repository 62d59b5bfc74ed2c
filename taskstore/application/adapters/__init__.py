"""
Store adapters.

Each adapter exposes the same async CRUD primitive surface scoped to one
physical store and maps native rows/documents into canonical records.

Exports:
  - RelationalAdapter: primary store (SQLAlchemy async)
  - DocumentAdapter: secondary store (pymongo async)
"""

from taskstore.application.adapters.document_adapter import DocumentAdapter
from taskstore.application.adapters.relational_adapter import RelationalAdapter

__all__ = ["RelationalAdapter", "DocumentAdapter"]
