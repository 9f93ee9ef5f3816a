"""
API routers for Daily Git Brief.
"""

__all__ = ["collect", "health", "languages", "trends"]
