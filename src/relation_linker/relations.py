"""
:py:mod:`relation_linker.relations` holds the pure functions computing relation mappings
and the :py:class:`Relation` strategies for plain Python owners.
"""

import dataclasses
import typing

from .exceptions import InvalidDeclarationError
from .interfaces import Child, Owner, Relation

Mapping = typing.Mapping[typing.Any, Child]


def linked(current: Mapping, children: Mapping) -> typing.Dict[typing.Any, Child]:
    """
    Returns a new mapping holding ``current`` plus ``children``.  References held by ``current``
    for keys also found in ``children`` are refreshed.
    """
    retval = dict(current)
    retval.update(children)
    return retval


def unlinked(
    current: Mapping, keys: typing.AbstractSet[typing.Any]
) -> typing.Dict[typing.Any, Child]:
    """
    Returns a new mapping holding ``current`` without ``keys``.  Keys not in ``current`` are ignored.
    """
    return {k: v for k, v in current.items() if k not in keys}


def relinked(children: Mapping) -> typing.Dict[typing.Any, Child]:
    """
    Returns the mapping that replaces whatever mapping an owner held by ``children``.
    """
    return linked({}, children)


class AttributeRelation(Relation[Owner, Child]):
    """
    A :py:class:`Relation` kept in an attribute of a mutable owner.  :py:meth:`store`
    rebinds the attribute to a fresh ``dict``.

    :param str name: The name of the relation, which is also the attribute name unless ``attr`` is given.
    :param Optional[str] attr: The name of the attribute holding the relation mapping.
    """

    _name: str
    attr: str

    @property
    def name(self) -> str:
        return self._name

    def fetch(self, owner: Owner) -> typing.Mapping[typing.Any, Child]:
        try:
            return getattr(owner, self.attr)
        except AttributeError:
            raise InvalidDeclarationError(
                f"{type(owner).__name__} has no relation attribute {self.attr}"
            )

    def store(self, owner: Owner, mapping: typing.Mapping[typing.Any, Child]) -> Owner:
        setattr(owner, self.attr, dict(mapping))
        return owner

    def __init__(self, name: str, attr: typing.Optional[str] = None):
        self._name = name
        self.attr = name if attr is None else attr


class DataclassRelation(AttributeRelation[Owner, Child]):
    """
    A :py:class:`Relation` kept in a field of a (possibly frozen) dataclass.
    :py:meth:`store` never touches the owner it is given and returns a new owner value instead.
    """

    def store(self, owner: Owner, mapping: typing.Mapping[typing.Any, Child]) -> Owner:
        assert dataclasses.is_dataclass(owner)
        return dataclasses.replace(owner, **{self.attr: dict(mapping)})  # type: ignore
