import typing

import sqlalchemy as sa  # type: ignore
import structlog
from sqlalchemy import orm  # type: ignore

from ...exceptions import InvalidDeclarationError, ResourceNotFoundError, StaleResourceError
from ...interfaces import AggregateAccessor, Child, Entity, Owner, Relation

logger = structlog.get_logger()


def default_resource_type(sa_mapper: orm.Mapper) -> str:
    tables = list(sa_mapper.tables)
    if len(tables) != 1:
        raise InvalidDeclarationError(
            f"SQLAlchemy mapper is associated to multiple tables: "
            f'{", ".join(table.name for table in tables)}'
        )
    return tables[0].name


class SQLAAccessor(AggregateAccessor[Entity]):
    """
    An :py:class:`AggregateAccessor` backed by an SQLAlchemy session.

    :param orm.Session session: The session to work with.
    :param type class_: The mapped class of the aggregates.
    :param Optional[str] resource_type: The name of the resource type. Defaults to the table name.
    :param bool lock_for_update: If set, aggregates are loaded with ``SELECT ... FOR UPDATE``
                                 so that concurrent writers of the same row are serialized.
    :param bool autocommit: If set, :py:meth:`persist` commits the session; otherwise it only flushes.
    """

    session: orm.Session
    class_: typing.Type[Entity]
    mapper: orm.Mapper
    _resource_type: str
    lock_for_update: bool
    autocommit: bool

    @property
    def resource_type(self) -> str:
        return self._resource_type

    def _identity(self, key: typing.Any) -> typing.Tuple[typing.Any, ...]:
        pkey_cols = self.mapper.primary_key
        if not isinstance(key, tuple):
            key = (key,)
        if len(pkey_cols) != len(key):
            raise ResourceNotFoundError(self._resource_type, key)
        return key

    def get(self, key: typing.Any) -> Entity:
        entity = self.session.get(
            self.class_, self._identity(key), with_for_update=self.lock_for_update or None
        )
        if entity is None:
            raise ResourceNotFoundError(self._resource_type, key)
        return entity

    def does_exist(self, key: typing.Any) -> bool:
        pkey_cols = self.mapper.primary_key
        expr = sa.and_(*(col == v for col, v in zip(pkey_cols, self._identity(key))))
        return bool(self.session.execute(sa.select(sa.exists().where(expr))).scalar())

    def persist(self, entity: Entity) -> Entity:
        self.session.add(entity)
        try:
            if self.autocommit:
                self.session.commit()
            else:
                self.session.flush()
        except orm.exc.StaleDataError as e:
            self.session.rollback()
            key = self.mapper.primary_key_from_instance(entity)
            raise StaleResourceError(self._resource_type, key) from e
        except Exception:
            self.session.rollback()
            raise
        logger.debug("persisted", resource_type=self._resource_type, autocommit=self.autocommit)
        return entity

    def __init__(
        self,
        session: orm.Session,
        class_: typing.Type[Entity],
        resource_type: typing.Optional[str] = None,
        lock_for_update: bool = False,
        autocommit: bool = True,
    ):
        self.session = session
        self.class_ = class_
        self.mapper = sa.inspect(class_)
        self._resource_type = (
            default_resource_type(self.mapper) if resource_type is None else resource_type
        )
        self.lock_for_update = lock_for_update
        self.autocommit = autocommit


class SQLARelation(Relation[Owner, Child]):
    """
    A :py:class:`Relation` kept in a dictionary-based SQLAlchemy relationship
    (one whose ``collection_class`` is :py:func:`sqlalchemy.orm.attribute_keyed_dict`
    keyed by the child's primary key).

    :py:meth:`store` brings the instrumented collection in line with the new mapping
    key by key, so that the unit of work only emits the rows that actually changed.
    """

    _name: str
    property: orm.RelationshipProperty

    @property
    def name(self) -> str:
        return self._name

    def fetch(self, owner: Owner) -> typing.Mapping[typing.Any, Child]:
        return self.property.class_attribute.__get__(owner, None)

    def store(self, owner: Owner, mapping: typing.Mapping[typing.Any, Child]) -> Owner:
        col = self.property.class_attribute.__get__(owner, None)
        for key in [key for key in col.keys() if key not in mapping]:
            del col[key]
        for key, child in mapping.items():
            if col.get(key) is not child:
                col[key] = child
        return owner

    def __init__(self, class_: type, name: str):
        try:
            prop = sa.inspect(class_).relationships[name]
        except KeyError:
            raise InvalidDeclarationError(f"{class_.__name__} has no relationship {name}")
        if not prop.uselist or prop.collection_class in (None, list, set):
            raise InvalidDeclarationError(
                f"relationship {name} of {class_.__name__} is not a keyed collection"
            )
        self._name = name
        self.property = prop
