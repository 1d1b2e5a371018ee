"""Dtokit - schema-driven data-transfer objects for web forms and APIs.

Each DTO is declared in one YAML file listing its properties, their types and
their constraints. A factory turns a DTO name into a fresh, isolated instance
backed by a cached schema; a populator fills it from decoded request input
while refusing undeclared fields; validation collects every failure into one
ordered result.

Architecture Overview:
- **DTO Layer**: Schema loading, coercion, validation and population
- **Core Layer**: Configuration, logging, errors and sanitization
- **API Layer**: FastAPI dependencies and error translation
"""
