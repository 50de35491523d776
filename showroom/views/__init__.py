"""Headless views following live collections"""

from .base import CollectionView
from .catalog import CatalogView
from .detail import VehicleDetailView
from .admin import AdminDashboardView

__all__ = [
    "CollectionView",
    "CatalogView",
    "VehicleDetailView",
    "AdminDashboardView",
]
