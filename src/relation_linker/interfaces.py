"""
This package contains a series of interface definitions that need to be
implemented by the storage and the network boundary the linker is used with.

"""
import abc
import typing

if typing.TYPE_CHECKING:
    from .identifiers import ExternalId  # noqa: F401

Entity = typing.TypeVar("Entity")
Owner = typing.TypeVar("Owner")
Child = typing.TypeVar("Child")


class AggregateAccessor(typing.Generic[Entity], metaclass=abc.ABCMeta):
    """
    An :py:class:`AggregateAccessor` gives access to the stored aggregates of a single
    resource type.  One instance is needed per resource type.
    """

    @property
    @abc.abstractmethod
    def resource_type(self) -> str:
        """
        Returns the name of the resource type whose aggregates this accessor loads.
        """
        ...  # pragma: nocover

    @abc.abstractmethod
    def get(self, key: typing.Any) -> Entity:
        """
        Loads the aggregate stored under ``key``.

        :param Any key: An internal key.
        :return: The loaded aggregate.
        :raises ResourceNotFoundError: if nothing is stored under ``key``.
        """
        ...  # pragma: nocover

    @abc.abstractmethod
    def does_exist(self, key: typing.Any) -> bool:
        """
        Tells whether an aggregate is stored under ``key``.

        :param Any key: An internal key.
        """
        ...  # pragma: nocover

    @abc.abstractmethod
    def persist(self, entity: Entity) -> Entity:
        """
        Saves the aggregate atomically.

        :param Any entity: The aggregate to save.
        :return: The saved aggregate.
        :raises StaleResourceError: if the stored aggregate was modified after ``entity`` was loaded.
        """
        ...  # pragma: nocover


class Relation(typing.Generic[Owner, Child], metaclass=abc.ABCMeta):
    """
    A :py:class:`Relation` tells a :py:class:`RelationLinker` where the relation mapping
    of an owner lives.  It is the only part that differs from one relation to another.
    """

    @property
    @abc.abstractmethod
    def name(self) -> str:
        ...  # pragma: nocover

    @abc.abstractmethod
    def fetch(self, owner: Owner) -> typing.Mapping[typing.Any, Child]:
        """
        Returns the relation mapping (child key to child entity) held by ``owner``.

        :param Any owner: A loaded owner.
        """
        ...  # pragma: nocover

    @abc.abstractmethod
    def store(self, owner: Owner, mapping: typing.Mapping[typing.Any, Child]) -> Owner:
        """
        Makes ``mapping`` the relation mapping of ``owner``.

        :param Any owner: A loaded owner.
        :param Mapping mapping: The new relation mapping.
        :return: The owner to be persisted, which may or may not be ``owner`` itself.
        """
        ...  # pragma: nocover


class IdentifierResolver(metaclass=abc.ABCMeta):
    @abc.abstractmethod
    def resolve(self, identifier: str) -> "ExternalId":
        """
        Resolves an opaque external identifier into a resource type and an internal key.

        :param str identifier: The external identifier.
        :raises InvalidIdentifierError: if the identifier is malformed.
        """
        ...  # pragma: nocover

    @abc.abstractmethod
    def to_external(self, resource_type: str, key: typing.Any) -> str:
        """
        Builds the external identifier for the resource of ``resource_type`` stored under ``key``.
        """
        ...  # pragma: nocover
