"""
API module for the quote browser.
Provides the FastAPI-based REST API.
"""

__all__ = ['app', 'routes', 'models', 'dependencies', 'middleware']
