"""Catalog, membership and provider-link services"""

from .filters import CatalogFilter, apply_filter, distinct_makes
from .listings import ListingService
from .memberships import MembershipService
from .providers import ProviderLinkService, checkout_links

__all__ = [
    "CatalogFilter",
    "apply_filter",
    "distinct_makes",
    "ListingService",
    "MembershipService",
    "ProviderLinkService",
    "checkout_links",
]
