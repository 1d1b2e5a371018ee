"""Utility modules for API-specific functionality.

- **responses**: High-performance JSON response classes using orjson
"""
