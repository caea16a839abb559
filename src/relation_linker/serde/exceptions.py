import dataclasses
import typing

from .types import JSONValue
from .utils import JSONPointer


class RelationSerdeError(Exception):
    pass


@dataclasses.dataclass(frozen=True)
class DeserializationErrorItem:
    pointer: JSONPointer
    message: str


class DeserializationError(RelationSerdeError):
    payload: typing.Any
    errors: typing.Sequence[DeserializationErrorItem]

    @property
    def message(self) -> str:
        return "; ".join(f"{e.pointer}: {e.message}" for e in self.errors)

    def __str__(self):
        return self.message

    def __init__(self, payload: JSONValue, errors: typing.Sequence[DeserializationErrorItem]):
        self.payload = payload
        self.errors = errors
