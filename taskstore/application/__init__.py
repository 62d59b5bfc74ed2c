"""Application layer: store adapters and reconciliation services."""
