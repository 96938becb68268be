"""
Test Suite for the Classic Nooks API

Test Organization:
- conftest.py: Shared fixtures (test database, client, catalog, logged-in user)
- test_books.py: Listing, keyset pagination, search and single-book lookups
- test_reader.py: Book text proxy and host allow-list
- test_auth.py: Registration, login, logout, /auth/me and CSRF
- test_captcha.py: reCAPTCHA verification
- test_library.py: Favorites and reading history
- test_cache.py / test_rate_limiter.py / test_sanitize.py: service helpers
- test_main.py: Health check and the shared error body

Running Tests:
    # Run all tests
    pytest

    # Run specific file
    pytest tests/test_books.py

    # Run with verbose output
    pytest -v
"""
