"""
Wayfarer Backend - ORM Models

Importing this package registers every table on Base.metadata,
which Alembic and the test fixtures rely on.
"""

from wayfarer.models.user import User, ROLE_USER, ROLE_ADMIN, ROLES
from wayfarer.models.spot import TouristSpot
from wayfarer.models.lodging import Lodging, LODGING_TYPES
from wayfarer.models.rating import Rating
from wayfarer.models.favorite import Favorite

__all__ = [
    "User",
    "ROLE_USER",
    "ROLE_ADMIN",
    "ROLES",
    "TouristSpot",
    "Lodging",
    "LODGING_TYPES",
    "Rating",
    "Favorite",
]
