"""API-related constants."""

# Content types
JSON_CONTENT_TYPES = {"application/json", "text/json"}
FORM_CONTENT_TYPES = {"application/x-www-form-urlencoded", "multipart/form-data"}

# Message returned for schema failures outside development
SCHEMA_ERROR_PUBLIC_MESSAGE = "The requested form is not available"
