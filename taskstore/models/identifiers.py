"""
Tagged identifiers and token classification.

Records live in two key spaces: relational auto-increment integers and
document-store 24-hex object ids. EntityId makes the tag explicit; the
numeric form is always the canonical cross-store join key.

Dependencies: pydantic
System role: Identifier model shared by adapters, normalizer and router
"""

import enum
import math
import re
from typing import Any

from pydantic import BaseModel, ConfigDict

HEX_ID_PATTERN = re.compile(r"^[a-f\d]{24}$", re.IGNORECASE)
OBJECT_ID_ENVELOPE_PATTERN = re.compile(
    r"""^ObjectId\(\s*["']?([a-f\d]{24})["']?\s*\)$""",
    re.IGNORECASE,
)
DIGITS_PATTERN = re.compile(r"^\d+$")


class IdKind(str, enum.Enum):
    """Identifier key space."""

    NUMERIC = "numeric"
    NATIVE = "native"


class EntityKind(str, enum.Enum):
    """Entity kinds whose ids can be referenced from other records."""

    USER = "user"
    GROUP = "group"
    TASK = "task"


class EntityId(BaseModel):
    """
    Identifier tagged with its key space.

    Attributes:
        kind: NUMERIC for relational ids (and document mirrors), NATIVE for
            document object ids without a mirror
        value: int for NUMERIC, 24-hex string for NATIVE
    """

    model_config = ConfigDict(frozen=True)

    kind: IdKind
    value: int | str

    @classmethod
    def numeric(cls, value: int) -> "EntityId":
        return cls(kind=IdKind.NUMERIC, value=int(value))

    @classmethod
    def native(cls, value: Any) -> "EntityId":
        return cls(kind=IdKind.NATIVE, value=str(value))

    @classmethod
    def prefer(cls, mirror_id: Any, native_id: Any) -> "EntityId":
        """
        Build the id exposed for a document record.

        The numeric mirror wins whenever it is a usable integer; the native
        key is only exposed when no mirror has been recorded yet.

        Args:
            mirror_id: Value of the document's mirror field (may be missing)
            native_id: The document's own _id

        Returns:
            EntityId: Numeric when a mirror exists, native otherwise
        """
        numeric = coerce_numeric(mirror_id)
        if numeric is not None:
            return cls.numeric(numeric)
        return cls.native(native_id)

    @property
    def is_numeric(self) -> bool:
        return self.kind is IdKind.NUMERIC

    def __str__(self) -> str:
        return str(self.value)


def coerce_numeric(token: Any) -> int | None:
    """
    Interpret a token as a relational numeric id.

    Accepts ints, finite floats (truncated) and all-digit strings.
    Booleans are rejected even though they subclass int.

    Args:
        token: Arbitrary identifier token

    Returns:
        int | None: Numeric id, or None if the token is not numeric
    """
    if isinstance(token, bool):
        return None
    if isinstance(token, int):
        return token
    if isinstance(token, float):
        if not math.isfinite(token):
            return None
        return math.trunc(token)
    if isinstance(token, str):
        stripped = token.strip()
        if DIGITS_PATTERN.match(stripped):
            return int(stripped)
    return None


def extract_hex_id(token: Any) -> str | None:
    """
    Extract a 24-hex object id from a bare or ObjectId("...")-wrapped string.

    Args:
        token: Arbitrary identifier token

    Returns:
        str | None: Lower-cased hex id, or None if the token is not hex-like
    """
    if token is None or isinstance(token, (bool, int, float)):
        return None
    # bson ObjectId instances stringify to their hex form
    stripped = str(token).strip()
    if HEX_ID_PATTERN.match(stripped):
        return stripped.lower()
    match = OBJECT_ID_ENVELOPE_PATTERN.match(stripped)
    if match:
        return match.group(1).lower()
    return None
