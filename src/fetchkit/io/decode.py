"""Structured decode capability.

JsonDecoder parses with orjson, then validates into the requested shape with a
pydantic TypeAdapter. Any type pydantic understands works as a shape: models,
dataclasses, TypedDicts, `list[Model]`, `dict[str, float]`, ...

Adapters are built once per shape and cached.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any, Protocol, TypeVar, runtime_checkable

import orjson
from pydantic import TypeAdapter, ValidationError

from fetchkit.foundation.errors import DecodeError

T = TypeVar("T")


@runtime_checkable
class Decoder(Protocol):
    """Protocol for body decoders."""

    def decode(self, body: bytes, shape: type[T]) -> T:
        """Parse body as shape. Raises DecodeError on failure."""
        ...


@lru_cache(maxsize=256)
def _adapter(shape: Any) -> TypeAdapter[Any]:
    return TypeAdapter(shape)


class JsonDecoder:
    """JSON body decoder (orjson + pydantic)."""

    __slots__ = ("_strict",)

    def __init__(self, *, strict: bool = False) -> None:
        self._strict = strict

    def decode(self, body: bytes, shape: type[T]) -> T:
        try:
            data = orjson.loads(body)
        except orjson.JSONDecodeError as e:
            raise DecodeError(f"Response body is not valid JSON: {e}") from e
        try:
            return _adapter(shape).validate_python(data, strict=self._strict)
        except ValidationError as e:
            name = getattr(shape, "__name__", repr(shape))
            raise DecodeError(
                f"Response body does not match {name}: {e.error_count()} validation error(s): {_first_error(e)}"
            ) from e

    def __repr__(self) -> str:
        return f"JsonDecoder(strict={self._strict})"


def _first_error(e: ValidationError) -> str:
    err = e.errors(include_url=False)[0]
    loc = ".".join(str(p) for p in err["loc"]) or "<root>"
    return f"{loc}: {err['msg']}"
