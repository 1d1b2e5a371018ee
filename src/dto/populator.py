"""Population of DTOs from external key/value input.

``RequestPopulator`` is the trust boundary between decoded request data and a
DTO. Only fields the schema declares are ever written; anything else in the
input is skipped, which keeps callers from mass-assigning properties a form
was never meant to set. Value failures are collected on the DTO and never
raised from ``populate``.

The module also provides the create/validate helpers request handlers use
around a populator.
"""

from collections.abc import Iterable

from loguru import logger

from src.core.config import get_settings
from src.core.exceptions import UnknownPropertyError
from src.core.types import FieldErrors, RawInput
from src.dto.dto import Dto
from src.dto.factory import DtoFactory, get_dto_factory


class RequestPopulator:
    """Copies declared fields from mapping input into a DTO.

    Args:
        strict: Raise ``UnknownPropertyError`` for undeclared input fields
            instead of skipping them. Defaults to
            ``settings.dto_config.strict_population``.
    """

    def __init__(self, *, strict: bool | None = None) -> None:
        if strict is None:
            strict = get_settings().dto_config.strict_population
        self.strict = strict

    def populate(
        self,
        dto: Dto,
        data: RawInput,
        fields: Iterable[str] | None = None,
    ) -> Dto:
        """Set every candidate field of ``data`` that ``dto`` declares.

        Args:
            dto: The DTO to fill; modified in place.
            data: Decoded key/value input.
            fields: Restrict population to these keys. Defaults to every key
                in ``data``; listed keys missing from ``data`` are ignored.

        Returns:
            Dto: The same DTO, for chaining into ``validate()``.

        Raises:
            UnknownPropertyError: In strict mode, if any candidate field is
                undeclared. Nothing is set in that case.
        """
        if fields is None:
            candidates = list(data.keys())
        else:
            candidates = [field for field in dict.fromkeys(fields) if field in data]

        undeclared = [field for field in candidates if not dto.has_property(field)]
        if undeclared:
            if self.strict:
                raise UnknownPropertyError(dto.name, [str(f) for f in undeclared])
            logger.debug(
                "Skipped {count} undeclared field(s) for {dto}",
                count=len(undeclared),
                dto=dto.name,
                skipped_fields=[str(f) for f in undeclared],
            )

        for field in candidates:
            if dto.has_property(field):
                dto.set(field, data[field])

        return dto


def create_dto_from_input(
    name: str,
    data: RawInput,
    fields: Iterable[str] | None = None,
    *,
    factory: DtoFactory | None = None,
    populator: RequestPopulator | None = None,
) -> Dto:
    """Create the DTO called ``name`` and populate it from ``data``.

    Raises:
        UnknownDtoError: If the name cannot be mapped to a schema file.
        SchemaParseError: If the schema file is malformed.
        UnknownPropertyError: If the populator is strict and ``data`` carries
            undeclared fields.
    """
    dto = (factory or get_dto_factory()).create(name)
    return (populator or RequestPopulator()).populate(dto, data, fields)


def validate_dto(dto: Dto) -> FieldErrors:
    """Validate ``dto`` and return its errors grouped by field (empty if valid)."""
    return dto.validate().by_field


def validate_dto_or_fail(dto: Dto) -> Dto:
    """Validate ``dto`` and raise the aggregate failure if it is invalid.

    Returns:
        Dto: The validated DTO.

    Raises:
        ValidationFailed: With the message ``"field: message, field: message"``.
    """
    dto.validate().raise_if_invalid()
    return dto
