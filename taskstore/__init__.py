"""
taskstore: dual-backend persistence for tasks, users and groups.

Runs against a relational store, a document store, or both at once during a
live migration window. See taskstore.dependencies.create_store_context for
the startup entry point.
"""

__version__ = "0.1.0"
