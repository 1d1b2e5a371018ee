"""Cross-cutting request/response concerns.

- **error_handler**: Centralized exception handling with consistent error
  responses for DTO validation and schema failures
"""
