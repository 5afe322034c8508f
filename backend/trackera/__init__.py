"""
Trackera backend: multi-tenant time tracking with schema-per-tenant storage.
"""
__version__ = "1.0.0"
