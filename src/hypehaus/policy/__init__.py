"""Sale parameter loading."""

from hypehaus.policy.resolver import PolicyResolver, validate_params

__all__ = ["PolicyResolver", "validate_params"]
