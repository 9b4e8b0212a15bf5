"""API routes."""

from fastapi import APIRouter

from storeratings.routes import admin, auth, ratings, stores, users

api_router = APIRouter()

# Credentials and tokens
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])

# Self-service profile
api_router.include_router(users.router, prefix="/users", tags=["users"])

# Store browsing
api_router.include_router(stores.router, prefix="/stores", tags=["stores"])

# Rating ledger
api_router.include_router(ratings.router, prefix="/ratings", tags=["ratings"])

# Admin endpoints (user and store management)
api_router.include_router(admin.router, prefix="/admin", tags=["admin"])
