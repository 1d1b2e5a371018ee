"""HTTP boundary for the DTO engine, built on FastAPI.

This package adapts request handling to the DTO engine without parsing
requests itself: Starlette decodes form and JSON bodies, and this layer hands
the decoded mapping to the populator.

Key components:
- **main**: Application factory wiring logging and exception handlers
- **dependencies**: ``DtoFromRequest`` dependency yielding populated DTOs
- **middleware.error_handler**: Translation of engine errors into responses
  - validation failures become 422 responses with field-level messages
  - schema failures become 500 responses
- **schemas**: Standardized error response model
- **utils**: orjson-backed JSON responses
"""
