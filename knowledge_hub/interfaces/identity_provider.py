"""Abstract base class for identity/role checks.

Authentication is an external collaborator: the API only needs a capability
check that turns a bearer token into ``Identity(id, role, department)`` or
fails.  The concrete implementation is SignedTokenIdentityProvider
(knowledge_hub/providers/identity/signed_token_provider.py).
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from knowledge_hub.models.article import Identity
from knowledge_hub.utils.errors import AuthorizationError


class IIdentityProvider(ABC):
    """Contract for resolving a request credential into an identity."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this provider."""

    @abstractmethod
    def authenticate(self, token: str | None) -> Identity:
        """Resolve *token* into an identity.

        Raises
        ------
        AuthenticationError
            If the token is missing, malformed, forged, or expired.
        """

    def require_role(self, identity: Identity, allowed_roles: list[str]) -> Identity:
        """Return *identity* if its role is allowed, else raise AuthorizationError."""
        if identity.role not in allowed_roles:
            raise AuthorizationError(
                f"Role '{identity.role}' may not modify articles",
                provider_name=self.get_provider_name(),
            )
        return identity
