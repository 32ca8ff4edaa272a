"""Entitlement provider abstraction."""

from __future__ import annotations

import abc


class EntitlementProvider(abc.ABC):
    """Answers whether a user holds the paid tier.

    Implementations answer from state that is already resolved; the session
    workspace calls ``is_pro`` inside its mutation handlers.
    """

    @abc.abstractmethod
    def is_pro(self, user_id: str) -> bool:
        raise NotImplementedError


__all__ = ["EntitlementProvider"]
