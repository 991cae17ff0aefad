from __future__ import annotations

from typing import Iterable, Protocol

from app.schemas.assessment import Tier


class TierResolver(Protocol):
    def resolve(self, user_id: str | None) -> Tier: ...


class StaticTierResolver:
    """Resolves configured user ids to ``pro``; everyone else is ``free``."""

    def __init__(self, pro_user_ids: Iterable[str] = ()):
        self._pro_user_ids = frozenset(uid.strip() for uid in pro_user_ids if uid and uid.strip())

    def resolve(self, user_id: str | None) -> Tier:
        if user_id and user_id.strip() in self._pro_user_ids:
            return Tier.PRO
        return Tier.FREE
