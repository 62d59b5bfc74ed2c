"""Operator entry points (run with python -m taskstore.scripts.<name>)."""
