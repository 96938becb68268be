#!/usr/bin/env python3
"""
Database Seed Script

Populates the catalog with a handful of Project Gutenberg books for
development. Book ids are the Gutenberg ebook numbers, the same keys the
production ingestion uses.

USAGE:
    # From the project root with the virtualenv active
    python scripts/seed_data.py

This script:
1. Connects to the database using app settings
2. Clears the existing catalog (users, sessions and libraries cascade)
3. Creates authors, genres and books with their relationships
4. Drops cached listings so the API serves the new catalog immediately
"""

import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from sqlalchemy import delete
from sqlalchemy.orm import Session

from classicnooks.database import SessionLocal, create_tables, get_engine
from classicnooks.models import Author, Book, Genre, book_authors, book_genres
from classicnooks.services.cache import invalidate_catalog_cache

GUTENBERG = "https://www.gutenberg.org"


def clear_data(db: Session) -> None:
    """Clear the existing catalog."""
    print("Clearing existing catalog...")
    db.execute(delete(book_authors))
    db.execute(delete(book_genres))
    db.execute(delete(Book))
    db.execute(delete(Author))
    db.execute(delete(Genre))
    db.commit()
    print("Catalog cleared.")


def create_authors(db: Session) -> dict[str, Author]:
    """Create sample authors (Gutenberg "Last, First" naming)."""
    print("Creating authors...")
    authors_data = [
        {"name": "Austen, Jane", "birth_year": 1775},
        {"name": "Shelley, Mary Wollstonecraft", "birth_year": 1797},
        {"name": "Melville, Herman", "birth_year": 1819},
        {"name": "Doyle, Arthur Conan", "birth_year": 1859},
        {"name": "Carroll, Lewis", "birth_year": 1832},
        {"name": "Dickens, Charles", "birth_year": 1812},
        {"name": "Homer", "birth_year": None},
        {"name": "Butler, Samuel", "birth_year": 1835},
    ]

    authors = {}
    for data in authors_data:
        author = Author(**data)
        db.add(author)
        authors[data["name"]] = author

    db.commit()
    print(f"Created {len(authors)} authors.")
    return authors


def create_genres(db: Session) -> dict[str, Genre]:
    """Create sample genres."""
    print("Creating genres...")
    genre_names = [
        "Romance",
        "Satire",
        "Gothic Fiction",
        "Science Fiction",
        "Adventure",
        "Detective and Mystery",
        "Fantasy",
        "Historical Fiction",
        "Epic Poetry",
    ]

    genres = {}
    for name in genre_names:
        genre = Genre(name=name)
        db.add(genre)
        genres[name] = genre

    db.commit()
    print(f"Created {len(genres)} genres.")
    return genres


def _gutenberg_urls(ebook_id: int) -> dict[str, str]:
    return {
        "cover_url": f"{GUTENBERG}/cache/epub/{ebook_id}/pg{ebook_id}.cover.medium.jpg",
        "source_text_url": f"{GUTENBERG}/ebooks/{ebook_id}.txt.utf-8",
    }


def create_books(
    db: Session,
    authors: dict[str, Author],
    genres: dict[str, Genre],
) -> list[Book]:
    """Create sample books with author and genre relationships."""
    print("Creating books...")

    books_data = [
        {
            "id": 11,
            "title": "Alice's Adventures in Wonderland",
            "description": "A girl falls down a rabbit hole into a world of nonsense.",
            "authors": ["Carroll, Lewis"],
            "genres": ["Fantasy", "Adventure"],
        },
        {
            "id": 84,
            "title": "Frankenstein; Or, The Modern Prometheus",
            "description": "A scientist creates life and is undone by his creation.",
            "authors": ["Shelley, Mary Wollstonecraft"],
            "genres": ["Gothic Fiction", "Science Fiction"],
        },
        {
            "id": 98,
            "title": "A Tale of Two Cities",
            "description": "London and Paris before and during the French Revolution.",
            "authors": ["Dickens, Charles"],
            "genres": ["Historical Fiction"],
        },
        {
            "id": 161,
            "title": "Sense and Sensibility",
            "description": "The Dashwood sisters navigate love and inheritance.",
            "authors": ["Austen, Jane"],
            "genres": ["Romance"],
        },
        {
            "id": 1342,
            "title": "Pride and Prejudice",
            "description": "Elizabeth Bennet and Mr. Darcy misjudge each other.",
            "authors": ["Austen, Jane"],
            "genres": ["Romance", "Satire"],
        },
        {
            "id": 1661,
            "title": "The Adventures of Sherlock Holmes",
            "description": "Twelve cases of the consulting detective.",
            "authors": ["Doyle, Arthur Conan"],
            "genres": ["Detective and Mystery"],
        },
        {
            "id": 2701,
            "title": "Moby Dick; Or, The Whale",
            "description": "Captain Ahab hunts the white whale.",
            "authors": ["Melville, Herman"],
            "genres": ["Adventure"],
        },
        {
            "id": 6130,
            "title": "The Iliad",
            "description": "The wrath of Achilles in the tenth year of the Trojan War.",
            "authors": ["Homer", "Butler, Samuel"],
            "genres": ["Epic Poetry"],
        },
    ]

    books = []
    for data in books_data:
        author_names = data.pop("authors")
        genre_names = data.pop("genres")

        book = Book(**data, **_gutenberg_urls(data["id"]))
        book.authors = [authors[name] for name in author_names]
        book.genres = [genres[name] for name in genre_names]

        db.add(book)
        books.append(book)

    db.commit()

    print(f"Created {len(books)} books.")
    return books


def seed_database(clear_existing: bool = True) -> None:
    """
    Main function to seed the database.

    Args:
        clear_existing: If True, clears the existing catalog before seeding.
    """
    print("=" * 60)
    print("Starting database seed...")
    print("=" * 60)

    # Create tables if they don't exist
    create_tables()

    db = SessionLocal(bind=get_engine())

    try:
        if clear_existing:
            clear_data(db)

        authors = create_authors(db)
        genres = create_genres(db)
        books = create_books(db, authors, genres)

        dropped = invalidate_catalog_cache()

        print("=" * 60)
        print("Database seeding completed successfully!")
        print("=" * 60)
        print("\nSummary:")
        print(f"  - Authors: {len(authors)}")
        print(f"  - Genres: {len(genres)}")
        print(f"  - Books: {len(books)}")
        print(f"  - Cache keys dropped: {dropped}")
        print("\nYou can now access the API at http://localhost:8001")
        print("API documentation at http://localhost:8001/docs")

    except Exception as e:
        print(f"Error seeding database: {e}")
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    seed_database()
