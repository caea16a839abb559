import dataclasses
import typing
import urllib.parse
import uuid

from .exceptions import InvalidIdentifierError, UnknownResourceTypeError
from .interfaces import IdentifierResolver


@dataclasses.dataclass(frozen=True)
class ExternalId:
    """
    The resolved form of an opaque external identifier.
    """

    type: str
    key: uuid.UUID

    def __str__(self) -> str:
        return f"{self.type}/{self.key}"


class PathIdentifierResolver(IdentifierResolver):
    """
    Resolves identifiers of the form ``{base_url}/{resource type}/{uuid}``.

    ``base_url`` can be an absolute URL (``https://connector/api/v2``) or a bare path
    (``/api/v2``).  Only the path part of an identifier is taken into account when
    resolving it, so both ``https://connector/api/v2/representations/<uuid>`` and
    ``/api/v2/representations/<uuid>`` resolve to the same :py:class:`ExternalId`.

    :param str base_url: The prefix shared by all the identifiers.
    :param Optional[Iterable[str]] resource_types: The resource types known to the resolver.
                                                   Any type is accepted when omitted.
    """

    base_url: str
    _base_path: str
    _resource_types: typing.Optional[typing.FrozenSet[str]]

    def resolve(self, identifier: str) -> ExternalId:
        if not isinstance(identifier, str):
            raise InvalidIdentifierError(identifier, "not a string")
        try:
            split = urllib.parse.urlsplit(identifier)
        except ValueError:
            raise InvalidIdentifierError(identifier, "not a URL")
        if split.query or split.fragment:
            raise InvalidIdentifierError(identifier, "unexpected query or fragment")
        prefix = self._base_path + "/"
        if not split.path.startswith(prefix):
            raise InvalidIdentifierError(identifier, f"must start with {prefix}")
        components = split.path[len(prefix) :].split("/")
        if len(components) != 2 or not all(components):
            raise InvalidIdentifierError(identifier, "must consist of a resource type and a key")
        type_, key = components
        if self._resource_types is not None and type_ not in self._resource_types:
            raise UnknownResourceTypeError(identifier, type_)
        try:
            return ExternalId(type=type_, key=uuid.UUID(key))
        except ValueError:
            raise InvalidIdentifierError(identifier, "malformed key")

    def to_external(self, resource_type: str, key: typing.Any) -> str:
        return f"{self.base_url}/{resource_type}/{key}"

    def __init__(
        self, base_url: str, resource_types: typing.Optional[typing.Iterable[str]] = None
    ):
        self.base_url = base_url.rstrip("/")
        self._base_path = urllib.parse.urlsplit(self.base_url).path
        self._resource_types = frozenset(resource_types) if resource_types is not None else None
