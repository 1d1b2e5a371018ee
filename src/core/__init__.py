"""Core infrastructure package for shared application functionality.

This package provides the foundational components used by the DTO engine and
the HTTP boundary:

- **config**: Centralized configuration management with environment support
- **constants**: Shared literal values
- **exceptions**: Structured exception hierarchy with error codes
- **error_context**: Sensitive data sanitization for safe logging
- **logging**: Structured logging built on Loguru
- **types**: Type aliases for better code clarity
"""
