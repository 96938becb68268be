"""
Services Package

This package contains business logic services that are:
- Separate from HTTP handling (routers)
- Reusable across different parts of the application
- Easier to test in isolation

Current services:
- cache.py: Redis read-through cache with graceful degradation
- captcha.py: reCAPTCHA token verification
- catalog.py: Book listing (keyset pagination), lookup and text URL
- library.py: Favorites and reading history upserts and listings
- rate_limiter.py: Rate limiting with slowapi and Redis backend
- reader.py: Allow-listed upstream plain-text fetch
- security.py: Password hashing and session/CSRF tokens
- sessions.py: Registration, login, logout and session lookup
"""
