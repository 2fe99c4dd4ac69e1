"""Identity resolver implementations."""
from .cloud import CloudIdentityResolver
from .descriptor import DescriptorIdentityResolver

__all__ = ["CloudIdentityResolver", "DescriptorIdentityResolver"]
