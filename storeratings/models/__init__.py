"""SQLAlchemy ORM models.

Models represent database tables:
- users: Accounts with credentials and a role
- stores: Rateable stores with an optional owner
- ratings: One score per (user, store)
"""

from storeratings.models.user import User
from storeratings.models.store import Store
from storeratings.models.rating import Rating

__all__ = ["User", "Store", "Rating"]
