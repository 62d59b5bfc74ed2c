"""Boundary layer: physical store access for the relational and document stores."""
