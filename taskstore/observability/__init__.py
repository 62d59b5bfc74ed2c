"""
Observability helpers.

Exports:
  - configure_logging(): root logger setup
"""

from taskstore.observability.logger import configure_logging

__all__ = ["configure_logging"]
