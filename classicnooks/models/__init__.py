"""
SQLAlchemy Models Package

Model Relationships:
- Author <-> Book: Many-to-Many (book_authors)
- Genre <-> Book: Many-to-Many (book_genres)
- User -> UserSession: One-to-Many
- User <-> Book: Favorite and HistoryEntry join tables

Import all models here so they are available from one place and so
Alembic discovers them for migrations.
"""

# The order matters for SQLAlchemy to resolve relationships
from classicnooks.models.author import Author
from classicnooks.models.genre import Genre
from classicnooks.models.book import Book, book_authors, book_genres
from classicnooks.models.user import User
from classicnooks.models.session import UserSession
from classicnooks.models.library import Favorite, HistoryEntry

__all__ = [
    "Author",
    "Genre",
    "Book",
    "book_authors",
    "book_genres",
    "User",
    "UserSession",
    "Favorite",
    "HistoryEntry",
]
