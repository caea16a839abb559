import abc
import typing

from .serde.utils import english_enumerate


class RelationLinkerException(Exception, metaclass=abc.ABCMeta):
    @property
    @abc.abstractmethod
    def message(self) -> str:
        ...  # pragma: nocover

    def __str__(self):
        return self.message


class InvalidDeclarationError(RelationLinkerException):
    _message: str

    @property
    def message(self) -> str:
        return self._message

    def __init__(self, message: str):
        self._message = message


class ResourceNotFoundError(RelationLinkerException):
    """
    Raised by an accessor when no resource of ``resource_type`` is stored under ``key``.
    """

    resource_type: str
    key: typing.Any

    @property
    def message(self) -> str:
        return f"no {self.resource_type} found for {self.key}"

    def __init__(self, resource_type: str, key: typing.Any):
        self.resource_type = resource_type
        self.key = key


class ValidationError(RelationLinkerException):
    _message: str

    @property
    def message(self) -> str:
        return self._message

    def __init__(self, message: str):
        self._message = message


class ChildResourceNotFoundError(ValidationError):
    """
    Raised by a linker when some of the requested children do not exist in their own store.
    Nothing is persisted when this is raised.
    """

    resource_type: str
    keys: typing.Sequence[typing.Any]

    @property
    def message(self) -> str:
        return (
            f"child must exist: no {self.resource_type} found for "
            f"{english_enumerate(self.keys)}"
        )

    def __init__(self, resource_type: str, keys: typing.Iterable[typing.Any]):
        self.resource_type = resource_type
        self.keys = sorted(keys, key=str)


class InvalidIdentifierError(RelationLinkerException):
    identifier: typing.Any
    detail: typing.Optional[str]

    @property
    def message(self) -> str:
        return f'invalid identifier{" (" + self.detail + ")" if self.detail is not None else ""}: "{self.identifier}"'

    def __init__(self, identifier: typing.Any, detail: typing.Optional[str] = None):
        self.identifier = identifier
        self.detail = detail


class UnknownResourceTypeError(InvalidIdentifierError):
    resource_type: str

    @property
    def message(self) -> str:
        return f'no resource known as "{self.resource_type}" (in "{self.identifier}")'

    def __init__(self, identifier: typing.Any, resource_type: str):
        super().__init__(identifier)
        self.resource_type = resource_type


class StaleResourceError(RelationLinkerException):
    """
    Raised by an accessor when the entity being persisted was modified
    by someone else after it had been loaded.
    """

    resource_type: str
    key: typing.Any

    @property
    def message(self) -> str:
        return f"{self.resource_type} {self.key} was modified concurrently"

    def __init__(self, resource_type: str, key: typing.Any):
        self.resource_type = resource_type
        self.key = key
