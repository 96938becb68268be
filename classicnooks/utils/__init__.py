"""
Utilities Package

Helper functions used across the application:
- sanitize.py: Search input normalization and LIKE escaping, int32
  identifier validation
"""
