"""Identity platform (Auth0) integration."""

from src.pizza42.services.identity.exceptions import IdentityProviderError
from src.pizza42.services.identity.management import ManagementClient

__all__ = [
    "IdentityProviderError",
    "ManagementClient",
]
