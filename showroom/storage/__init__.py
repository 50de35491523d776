"""Data storage and persistence layer"""

from .models import Vehicle, MembershipRecord, ProviderLink, COLLECTIONS
from .database import Database

__all__ = [
    "Vehicle",
    "MembershipRecord",
    "ProviderLink",
    "COLLECTIONS",
    "Database",
]
