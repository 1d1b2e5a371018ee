"""FastAPI dependencies that turn request input into populated DTOs.

Usage::

    @app.post("/posts")
    async def create_post(
        dto: Annotated[Dto, Depends(DtoFromRequest("CreatePost"))],
    ) -> dict[str, object]:
        return dto.to_dict()

The request body is decoded by content type: JSON objects, urlencoded or
multipart forms, and the query string for requests without a body. Errors
raised here are handled by ``register_exception_handlers``.
"""

from collections.abc import Iterable
from typing import Any

import orjson
from fastapi import Request

from src.api.constants import FORM_CONTENT_TYPES, JSON_CONTENT_TYPES
from src.core.exceptions import ValidationError
from src.dto import Dto, DtoFactory, get_dto_factory
from src.dto.populator import create_dto_from_input, validate_dto_or_fail


async def read_request_input(request: Request) -> dict[str, Any]:
    """Decode the request's key/value input.

    Args:
        request: The incoming request.

    Returns:
        dict[str, Any]: Field names mapped to raw values. Repeated form or
            query keys keep their last value.

    Raises:
        ValidationError: If a JSON body is malformed or not an object.
    """
    content_type = request.headers.get("content-type", "")
    media_type = content_type.split(";", 1)[0].strip().lower()

    if media_type in JSON_CONTENT_TYPES:
        body = await request.body()
        if not body.strip():
            return {}
        try:
            payload = orjson.loads(body)
        except orjson.JSONDecodeError as e:
            raise ValidationError("Malformed JSON body", cause=e) from e
        if not isinstance(payload, dict):
            raise ValidationError(
                "JSON body must be an object",
                context={"received_type": type(payload).__name__},
            )
        return payload

    if media_type in FORM_CONTENT_TYPES:
        form = await request.form()
        return dict(form.items())

    return dict(request.query_params.items())


class DtoFromRequest:
    """Dependency yielding a DTO populated from the current request.

    Args:
        name: DTO name, resolved through the factory's naming convention.
        fields: Allowlist of input fields to copy. Defaults to every key the
            request carries; undeclared keys are skipped either way.
        validate: Run validation and raise ``ValidationFailed`` if the DTO is
            invalid. Disable to receive the DTO and inspect it yourself.
        factory: Factory to create DTOs with. Defaults to ``get_dto_factory()``.
    """

    def __init__(
        self,
        name: str,
        fields: Iterable[str] | None = None,
        *,
        validate: bool = True,
        factory: DtoFactory | None = None,
    ) -> None:
        self.name = name
        self.fields = list(fields) if fields is not None else None
        self.validate = validate
        self.factory = factory

    async def __call__(self, request: Request) -> Dto:
        """Build, populate and optionally validate the DTO."""
        data = await read_request_input(request)
        dto = create_dto_from_input(
            self.name,
            data,
            self.fields,
            factory=self.factory or get_dto_factory(),
        )
        if self.validate:
            validate_dto_or_fail(dto)
        return dto
