"""Identity providers for the write routes."""

from knowledge_hub.providers.identity.signed_token_provider import SignedTokenIdentityProvider

__all__ = ["SignedTokenIdentityProvider"]
