"""Canonical data model shared by every provider.

All types use Pydantic v2 for validation. Modifiers are validated once, at
construction, so providers can trust every field they read.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from enum import StrEnum
from typing import Any, Self

from pydantic import BaseModel, ConfigDict, ValidationError, ValidationInfo, field_validator

from imgcdn.errors import ContractViolationError

PassthroughValue = str | int | float


class Fit(StrEnum):
    """Well-known resize strategies.

    Providers map these onto their own vocabulary. Values outside this set
    are still accepted by Modifiers; each provider decides what to do.
    """

    COVER = "cover"
    CONTAIN = "contain"
    FILL = "fill"
    INSIDE = "inside"
    OUTSIDE = "outside"


MODIFIER_FIELDS: frozenset[str] = frozenset({"width", "height", "fit", "format", "quality"})


def _positive_int(value: Any, name: str, *, maximum: int | None = None) -> int | None:
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError(f"{name} must be a positive integer, got {value!r}")
    if isinstance(value, int):
        number = value
    elif isinstance(value, float) and value.is_integer():
        number = int(value)
    elif isinstance(value, str) and value.strip().isdigit():
        number = int(value.strip())
    else:
        raise ValueError(f"{name} must be a positive integer, got {value!r}")
    if number <= 0:
        raise ValueError(f"{name} must be a positive integer, got {value!r}")
    if maximum is not None and number > maximum:
        raise ValueError(f"{name} must be at most {maximum}, got {value!r}")
    return number


def _passthrough_value(key: str, value: Any) -> PassthroughValue:
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        raise ValueError(f"passthrough modifier {key!r} must be a string or number, got {value!r}")
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def _contract_violation(exc: ValidationError) -> ContractViolationError:
    first = exc.errors()[0]
    field = str(first["loc"][0]) if first["loc"] else None
    original = first.get("ctx", {}).get("error")
    message = str(original) if original is not None else first["msg"]
    return ContractViolationError(f"Invalid modifiers: {message}", field=field)


class Modifiers(BaseModel):
    """A provider-agnostic transform request. All fields are optional.

    Absence means "no constraint"; there are no sentinel zeros. Passthrough
    keys live in ``extras`` as pairs sorted by key, so two equal requests
    built in a different key order encode to the same URL.

    Raises:
        ContractViolationError: On construction, for negative, zero or
            non-integer dimensions, out-of-range quality, or passthrough
            values that are not strings or numbers.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    width: int | None = None
    height: int | None = None
    fit: str | None = None
    format: str | None = None
    quality: int | None = None
    extras: tuple[tuple[str, PassthroughValue], ...] = ()

    def __init__(self, **data: Any) -> None:
        try:
            super().__init__(**data)
        except ValidationError as exc:
            raise _contract_violation(exc) from None

    @classmethod
    def model_validate(cls, obj: Any, *args: Any, **kwargs: Any) -> Self:
        try:
            return super().model_validate(obj, *args, **kwargs)
        except ValidationError as exc:
            raise _contract_violation(exc) from None

    @classmethod
    def model_validate_json(cls, json_data: str | bytes, *args: Any, **kwargs: Any) -> Self:
        try:
            return super().model_validate_json(json_data, *args, **kwargs)
        except ValidationError as exc:
            raise _contract_violation(exc) from None

    @field_validator("width", "height", mode="before")
    @classmethod
    def _check_dimension(cls, value: Any, info: ValidationInfo) -> int | None:
        return _positive_int(value, info.field_name)

    @field_validator("quality", mode="before")
    @classmethod
    def _check_quality(cls, value: Any) -> int | None:
        return _positive_int(value, "quality", maximum=100)

    @field_validator("fit", "format", mode="before")
    @classmethod
    def _normalize_token(cls, value: Any, info: ValidationInfo) -> str | None:
        if value is None:
            return None
        if not isinstance(value, str):
            raise ValueError(f"{info.field_name} must be a string, got {value!r}")
        value = value.strip()
        if not value:
            return None
        return value.lower() if info.field_name == "fit" else value

    @field_validator("extras", mode="before")
    @classmethod
    def _sort_extras(cls, value: Any) -> tuple[tuple[str, PassthroughValue], ...]:
        if value is None:
            return ()
        pairs: Iterable[tuple[Any, Any]] = value.items() if isinstance(value, Mapping) else value
        cleaned: dict[str, PassthroughValue] = {}
        for key, item in pairs:
            if not isinstance(key, str) or not key:
                raise ValueError(f"passthrough modifier keys must be non-empty strings, got {key!r}")
            if key in MODIFIER_FIELDS:
                raise ValueError(f"{key!r} is a canonical modifier, not a passthrough key")
            if item is None:
                continue
            cleaned[key] = _passthrough_value(key, item)
        return tuple(sorted(cleaned.items()))

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> Self:
        """Build from a flat mapping; unknown keys become passthrough extras."""
        known: dict[str, Any] = {}
        extras: dict[str, Any] = {}
        for key, value in mapping.items():
            if key in MODIFIER_FIELDS:
                known[key] = value
            elif key == "extras" and isinstance(value, Mapping):
                extras.update(value)
            else:
                extras[key] = value
        return cls(**known, extras=extras)

    @classmethod
    def coerce(cls, value: Modifiers | Mapping[str, Any] | None) -> Modifiers:
        """Accept None, a mapping, or an existing Modifiers instance."""
        if value is None:
            return cls()
        if isinstance(value, Modifiers):
            return value
        if isinstance(value, Mapping):
            return cls.from_mapping(value)
        raise ContractViolationError(
            f"Modifiers must be a mapping or Modifiers instance, got {type(value).__name__}"
        )

    @property
    def is_empty(self) -> bool:
        return (
            self.width is None
            and self.height is None
            and self.fit is None
            and self.format is None
            and self.quality is None
            and not self.extras
        )


class ImageResult(BaseModel):
    """What a provider returns for one source.

    ``is_static`` is only set by the local provider, when the source is
    already a servable static asset and no transform URL was built.
    """

    model_config = ConfigDict(frozen=True)

    url: str
    is_static: bool = False
