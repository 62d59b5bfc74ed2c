"""
Shared model building blocks.

Dependencies: pydantic
System role: Common base for patch-style update inputs
"""

from typing import ClassVar

from pydantic import BaseModel, model_validator


class PatchModel(BaseModel):
    """
    Base for partial updates.

    Every field defaults to None so callers can omit it. Fields listed in
    non_nullable map to NOT NULL columns and may be omitted but never set
    to None explicitly.
    """

    non_nullable: ClassVar[tuple[str, ...]] = ()

    @model_validator(mode="after")
    def reject_explicit_none(self) -> "PatchModel":
        cleared = sorted(
            name for name in self.non_nullable
            if name in self.model_fields_set and getattr(self, name) is None
        )
        if cleared:
            raise ValueError(f"fields cannot be set to null: {', '.join(cleared)}")
        return self
