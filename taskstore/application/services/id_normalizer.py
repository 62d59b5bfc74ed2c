"""
ID normalizer.

Canonicalizes heterogeneous identifier tokens into relational numeric ids.
Tokens are classified in priority order: numeric, all-digit string, then
24-hex (bare or ObjectId("...") wrapped) resolved through the document
store's mirror field. Anything unresolvable is dropped; lookups that fail
degrade to dropped tokens, never to an exception.

Dependencies: taskstore.application.adapters, taskstore.models
System role: ID Normalizer for the reconciliation layer
"""

import logging
from typing import Any, Iterable

from taskstore.application.adapters.document_adapter import DocumentAdapter
from taskstore.application.adapters.relational_adapter import RelationalAdapter
from taskstore.models.identifiers import EntityKind, coerce_numeric, extract_hex_id

logger = logging.getLogger(__name__)


class IdNormalizer:
    """
    Resolves id tokens of any accepted form to numeric ids.

    The document adapter answers hex lookups. The relational adapter is
    optional and only used to recover mirrors for user documents seeded
    without one.
    """

    def __init__(
        self,
        documents: DocumentAdapter | None,
        relational: RelationalAdapter | None = None,
    ) -> None:
        """
        Initialize normalizer.

        Args:
            documents: Document adapter used to resolve hex ids (None disables hex resolution)
            relational: Relational adapter used for the username fallback
        """
        self.documents = documents
        self.relational = relational

    async def normalize(self, tokens: Iterable[Any] | None, kind: EntityKind) -> list[int]:
        """
        Normalize a token list into de-duplicated numeric ids.

        Args:
            tokens: Mixed tokens (int, digit string, hex string, wrapped hex)
            kind: Entity kind the tokens refer to (selects the lookup collection)

        Returns:
            list[int]: Numeric ids, duplicates removed, unresolvable tokens absent
        """
        if tokens is None:
            tokens = []
        elif isinstance(tokens, (str, bytes)) or not isinstance(tokens, Iterable):
            tokens = [tokens]

        resolved: list[int] = []
        pending_hex: list[str] = []
        for token in tokens:
            numeric = coerce_numeric(token)
            if numeric is not None:
                resolved.append(numeric)
                continue
            hex_id = extract_hex_id(token)
            if hex_id is not None:
                pending_hex.append(hex_id)
            else:
                logger.debug("Dropping unrecognised id token", extra={"token": repr(token), "kind": kind.value})

        if pending_hex:
            mirrors = await self._lookup_mirrors(kind, pending_hex)
            for hex_id in pending_hex:
                mirror = mirrors.get(hex_id)
                if mirror is not None:
                    resolved.append(mirror)
                else:
                    logger.debug("Dropping unresolved hex id", extra={"token": hex_id, "kind": kind.value})

        return list(dict.fromkeys(resolved))

    async def normalize_one(self, token: Any, kind: EntityKind) -> int | None:
        """
        Normalize a single token.

        Args:
            token: Id token of any accepted form
            kind: Entity kind the token refers to

        Returns:
            int | None: Numeric id, or None when unresolvable
        """
        if token is None:
            return None
        ids = await self.normalize([token], kind)
        return ids[0] if ids else None

    async def normalize_users(self, tokens: Iterable[Any] | None) -> list[int]:
        return await self.normalize(tokens, EntityKind.USER)

    async def normalize_groups(self, tokens: Iterable[Any] | None) -> list[int]:
        return await self.normalize(tokens, EntityKind.GROUP)

    async def resolve_user_id(self, token: Any) -> int | None:
        """
        Resolve a user token, recovering a missing mirror by username.

        A hex user document without a mirror is matched to its relational
        row by username; the recovered id is written back as the mirror
        (best effort).

        Args:
            token: User id token

        Returns:
            int | None: Numeric user id, or None when unresolvable
        """
        numeric = await self.normalize_one(token, EntityKind.USER)
        if numeric is not None or self.documents is None or self.relational is None:
            return numeric

        hex_id = extract_hex_id(token)
        if hex_id is None:
            return None
        try:
            document_user = await self.documents.get_user(hex_id)
            if document_user is None:
                return None
            relational_user = await self.relational.get_user_by_username(document_user.username)
        except Exception as e:
            logger.warning(
                "User id recovery by username failed",
                extra={"token": hex_id, "error": str(e)},
            )
            return None
        if relational_user is None:
            return None

        recovered = int(relational_user.id.value)
        try:
            await self.documents.set_mirror_id(EntityKind.USER, hex_id, recovered)
        except Exception as e:
            logger.warning(
                "Mirror back-fill after username recovery failed",
                extra={"token": hex_id, "user_id": recovered, "error": str(e)},
            )
        return recovered

    async def _lookup_mirrors(self, kind: EntityKind, hex_ids: list[str]) -> dict[str, int]:
        if self.documents is None:
            return {}
        try:
            return await self.documents.find_mirror_ids(kind, hex_ids)
        except Exception as e:
            logger.warning(
                "Mirror lookup failed, dropping hex ids",
                extra={"kind": kind.value, "count": len(hex_ids), "error": str(e)},
            )
            return {}
