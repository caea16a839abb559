"""
Classes in :py:mod:`relation_linker.serde.models` are abstract representation of the documents
exchanged by the relation endpoints.
"""

import dataclasses
import typing

from .utils import JSONPointer

Source = typing.Union[JSONPointer, str]


@dataclasses.dataclass
class Repr:
    """
    The base class for any model objects.
    """

    _source_: typing.Optional[Source] = None


@dataclasses.dataclass(init=False)
class IdentifierRepr(Repr):
    """
    :py:class:`IdentifierRepr` represents a single external identifier, as found in a request body.
    """

    value: str  # type: ignore

    def __init__(self, value: str, _source_: typing.Optional[Source] = None):
        """
        :param str value: the external identifier.
        :param Union[JSONPointer, str, None] _source_: an object that describes the source of the node.
        """
        super().__init__(_source_=_source_)
        self.value = value


@dataclasses.dataclass(init=False)
class IdentifierListRepr(Repr):
    """
    :py:class:`IdentifierListRepr` represents a list of external identifiers, which is
    what the relation endpoints take as request bodies and give back as response bodies.
    """

    items: typing.Sequence[IdentifierRepr] = ()

    def values(self) -> typing.List[str]:
        return [item.value for item in self.items]

    def __init__(
        self,
        items: typing.Iterable[typing.Union[IdentifierRepr, str]] = (),
        _source_: typing.Optional[Source] = None,
    ):
        """
        :param Iterable[Union[IdentifierRepr, str]] items: the identifiers.
        :param Union[JSONPointer, str, None] _source_: an object that describes the source of the node.
        """
        super().__init__(_source_=_source_)
        self.items = tuple(
            item if isinstance(item, IdentifierRepr) else IdentifierRepr(item) for item in items
        )


@dataclasses.dataclass(init=False)
class SourceRepr(Repr):
    """
    :py:class:`SourceRepr` represents a value for the ``source`` property of an `Error Object <https://jsonapi.org/format/#error-objects>`_.
    """

    pointer: typing.Optional[str] = None
    parameter: typing.Optional[str] = None

    def __init__(
        self,
        pointer: typing.Optional[str] = None,
        parameter: typing.Optional[str] = None,
        _source_: typing.Optional[Source] = None,
    ):
        super().__init__(_source_=_source_)
        self.pointer = pointer
        self.parameter = parameter


@dataclasses.dataclass
class ErrorRepr(Repr):
    status: typing.Optional[str] = None
    code: typing.Optional[str] = None
    title: typing.Optional[str] = None
    detail: typing.Optional[str] = None
    source: typing.Optional[SourceRepr] = None


@dataclasses.dataclass(init=False)
class ErrorDocumentRepr(Repr):
    errors: typing.Sequence[ErrorRepr] = ()
    meta: typing.Dict[str, typing.Any] = dataclasses.field(default_factory=dict)

    def __init__(
        self,
        errors: typing.Sequence[ErrorRepr],
        meta: typing.Optional[typing.Dict[str, typing.Any]] = None,
        _source_: typing.Optional[Source] = None,
    ):
        """
        :param Sequence[ErrorRepr] errors: a sequence of :py:class:`ErrorRepr`.
        :param Optional[Dict[str, Any]] meta: a dictionary containing user-defined information.
        :param Union[JSONPointer, str, None] _source_: an object that describes the source of the node.
        """
        if not errors:
            raise ValueError("errors must not be empty")
        super().__init__(_source_=_source_)
        self.errors = tuple(errors)
        self.meta = meta if meta is not None else {}
