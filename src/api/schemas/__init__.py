"""Pydantic models for API responses.

- **errors**: Standardized error response carrying field-level validation
  messages
"""
