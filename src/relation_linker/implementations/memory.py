import copy
import dataclasses
import operator
import threading
import typing

import structlog

from ..exceptions import ResourceNotFoundError, StaleResourceError
from ..interfaces import AggregateAccessor, Entity

logger = structlog.get_logger()


class InMemoryAccessor(AggregateAccessor[Entity]):
    """
    An :py:class:`AggregateAccessor` keeping aggregates in a dictionary.

    Aggregates are copied on their way in and out, so that nothing done to a loaded
    aggregate is visible to anyone before it gets persisted.  When ``version_attr`` is
    set, writes are checked optimistically: the version an aggregate was loaded with
    must still be the stored one when it gets persisted, otherwise
    :py:class:`StaleResourceError` is raised and nothing is written.

    :param str resource_type: The name of the resource type.
    :param Callable key_of: A function returning the key of an aggregate.
    :param Optional[str] version_attr: The name of the attribute holding the version counter.
    """

    _resource_type: str
    key_of: typing.Callable[[Entity], typing.Any]
    version_attr: typing.Optional[str]
    _entries: typing.Dict[typing.Any, Entity]
    _lock: threading.Lock

    @property
    def resource_type(self) -> str:
        return self._resource_type

    def get(self, key: typing.Any) -> Entity:
        with self._lock:
            try:
                entity = self._entries[key]
            except KeyError:
                raise ResourceNotFoundError(self._resource_type, key)
            return copy.deepcopy(entity)

    def does_exist(self, key: typing.Any) -> bool:
        with self._lock:
            return key in self._entries

    def _bump_version(self, key: typing.Any, entity: Entity) -> Entity:
        assert self.version_attr is not None
        current = self._entries.get(key)
        version = getattr(entity, self.version_attr)
        if current is not None and getattr(current, self.version_attr) != version:
            raise StaleResourceError(self._resource_type, key)
        try:
            setattr(entity, self.version_attr, version + 1)
        except AttributeError:
            entity = dataclasses.replace(entity, **{self.version_attr: version + 1})  # type: ignore
        return entity

    def persist(self, entity: Entity) -> Entity:
        key = self.key_of(entity)
        with self._lock:
            if self.version_attr is not None:
                entity = self._bump_version(key, entity)
            self._entries[key] = copy.deepcopy(entity)
        logger.debug("persisted", resource_type=self._resource_type, key=str(key))
        return entity

    def delete(self, key: typing.Any) -> None:
        with self._lock:
            try:
                del self._entries[key]
            except KeyError:
                raise ResourceNotFoundError(self._resource_type, key)

    def __len__(self) -> int:
        return len(self._entries)

    def __init__(
        self,
        resource_type: str,
        key_of: typing.Callable[[Entity], typing.Any] = operator.attrgetter("id"),
        version_attr: typing.Optional[str] = "version",
    ):
        self._resource_type = resource_type
        self.key_of = key_of
        self.version_attr = version_attr
        self._entries = {}
        self._lock = threading.Lock()
