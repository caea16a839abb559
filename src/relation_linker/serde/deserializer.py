import collections.abc
import typing

from .exceptions import DeserializationError, DeserializationErrorItem
from .models import IdentifierListRepr, IdentifierRepr
from .types import JSONValue
from .utils import JSONPointer


def _json_type_repr(value: typing.Any) -> str:
    if value is None:
        return "null"
    elif isinstance(value, bool):
        return "boolean"
    elif isinstance(value, (int, float)):
        return "number"
    elif isinstance(value, str):
        return "string"
    elif isinstance(value, collections.abc.Mapping):
        return "object"
    elif isinstance(value, collections.abc.Sequence):
        return "array"
    else:
        return type(value).__name__


class ErrorCollectingContext:
    errors: typing.List[DeserializationErrorItem]
    max_errors: typing.Optional[int]

    @property
    def stopped(self) -> bool:
        return self.max_errors is not None and len(self.errors) >= self.max_errors

    def validation_error_occurred(self, pointer: JSONPointer, message: str) -> None:
        self.errors.append(DeserializationErrorItem(pointer, message))

    def __init__(self, max_errors: typing.Optional[int] = None):
        self.errors = []
        self.max_errors = max_errors


class IdentifierListDeserializer:
    """
    Turns a request body into an :py:class:`IdentifierListRepr`.  Every node of the result
    remembers the JSON pointer it came from, and every problem found is reported at once
    in a single :py:class:`DeserializationError`.
    """

    max_errors: typing.Optional[int]

    def _convert_identifier(
        self, ctx: ErrorCollectingContext, pointer: JSONPointer, value: JSONValue
    ) -> typing.Optional[IdentifierRepr]:
        if not isinstance(value, str):
            ctx.validation_error_occurred(
                pointer, f"value has type {_json_type_repr(value)} where string expected"
            )
            return None
        if not value:
            ctx.validation_error_occurred(pointer, "identifier must not be empty")
            return None
        return IdentifierRepr(value, _source_=pointer)

    def __call__(self, document: JSONValue) -> IdentifierListRepr:
        ctx = ErrorCollectingContext(self.max_errors)
        pointer = JSONPointer()
        if isinstance(document, (str, bytes)) or not isinstance(
            document, collections.abc.Sequence
        ):
            ctx.validation_error_occurred(
                pointer,
                f"value has type {_json_type_repr(document)} where array of identifiers expected",
            )
            raise DeserializationError(document, ctx.errors)

        items: typing.List[IdentifierRepr] = []
        for i, value in enumerate(document):
            item = self._convert_identifier(ctx, pointer[i], value)
            if item is not None:
                items.append(item)
            if ctx.stopped:
                break
        if ctx.errors:
            raise DeserializationError(document, ctx.errors)
        return IdentifierListRepr(items, _source_=pointer)

    def __init__(self, max_errors: typing.Optional[int] = None):
        self.max_errors = max_errors
