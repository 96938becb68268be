"""
API Routers Package

This package contains FastAPI routers that handle API endpoints.

Router Structure:
- books.py: /api/v1/books/* endpoints (catalog, text, favorite status)
- auth.py: /api/v1/auth/* endpoints (register, login, logout, me)
- users.py: /api/v1/users/me/* endpoints (favorites, history)

Each router is imported and registered in main.py.
"""

from classicnooks.routers.auth import router as auth_router
from classicnooks.routers.books import router as books_router
from classicnooks.routers.users import router as users_router

__all__ = [
    "auth_router",
    "books_router",
    "users_router",
]
