"""Token metadata URIs."""

from hypehaus.metadata.resolver import MetadataResolver, resolve_token_uri

__all__ = ["MetadataResolver", "resolve_token_uri"]
