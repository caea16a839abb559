import typing

import structlog

from .exceptions import ChildResourceNotFoundError, ResourceNotFoundError
from .interfaces import AggregateAccessor, Child, Owner, Relation
from .relations import linked, relinked, unlinked

logger = structlog.get_logger()


class RelationLinker(typing.Generic[Owner, Child]):
    """
    A :py:class:`RelationLinker` reads and modifies the set of children an owner is
    linked to through a single :py:class:`Relation`.

    Every call loads the owner once and persists it at most once.  The requested
    children are all checked against the child store before anything is changed,
    so a call that raises leaves the stored owner as it was.

    :param AggregateAccessor owners: The accessor for the owners.
    :param AggregateAccessor children: The accessor for the children.
    :param Relation relation: The relation to manage.
    :param bool require_existing_on_remove: If set to :py:const:`False`, :py:meth:`remove`
                                            unlinks children regardless of whether they still exist.
    """

    owners: AggregateAccessor[Owner]
    children: AggregateAccessor[Child]
    relation: Relation[Owner, Child]
    require_existing_on_remove: bool

    def _ensure_existence(self, keys: typing.AbstractSet[typing.Any]) -> None:
        missing = [key for key in keys if not self.children.does_exist(key)]
        if missing:
            raise ChildResourceNotFoundError(self.children.resource_type, missing)

    def _fetch_children(
        self, keys: typing.AbstractSet[typing.Any]
    ) -> typing.Dict[typing.Any, Child]:
        self._ensure_existence(keys)
        retval: typing.Dict[typing.Any, Child] = {}
        gone = []
        for key in keys:
            try:
                retval[key] = self.children.get(key)
            except ResourceNotFoundError:
                gone.append(key)
        if gone:
            # deleted since the existence check
            raise ChildResourceNotFoundError(self.children.resource_type, gone)
        return retval

    def _commit(
        self, owner_id: typing.Any, owner: Owner, mapping: typing.Mapping[typing.Any, Child]
    ) -> None:
        self.owners.persist(self.relation.store(owner, mapping))
        logger.info(
            "relation updated",
            owner_type=self.owners.resource_type,
            owner_id=str(owner_id),
            relation=self.relation.name,
            size=len(mapping),
        )

    def get(self, owner_id: typing.Any) -> typing.FrozenSet[typing.Any]:
        """
        Returns the keys of the children linked to the owner.

        :param Any owner_id: The internal key of the owner.
        :raises ResourceNotFoundError: if the owner does not exist.
        """
        owner = self.owners.get(owner_id)
        return frozenset(self.relation.fetch(owner).keys())

    def add(self, owner_id: typing.Any, ids: typing.Iterable[typing.Any]) -> None:
        """
        Links the owner to the children.  Children already linked stay linked.

        :param Any owner_id: The internal key of the owner.
        :param Iterable ids: The internal keys of the children.
        :raises ResourceNotFoundError: if the owner does not exist.
        :raises ChildResourceNotFoundError: if any of the children does not exist.
        """
        keys = frozenset(ids)
        owner = self.owners.get(owner_id)
        children = self._fetch_children(keys)
        logger.debug("linking children", relation=self.relation.name, count=len(keys))
        self._commit(owner_id, owner, linked(self.relation.fetch(owner), children))

    def remove(self, owner_id: typing.Any, ids: typing.Iterable[typing.Any]) -> None:
        """
        Unlinks the children from the owner.  Children not linked are ignored.

        Unless ``require_existing_on_remove`` is turned off, every child must still
        exist in the child store, which means that a link to a child deleted behind
        the owner's back cannot be removed this way.

        :param Any owner_id: The internal key of the owner.
        :param Iterable ids: The internal keys of the children.
        :raises ResourceNotFoundError: if the owner does not exist.
        :raises ChildResourceNotFoundError: if any of the children does not exist.
        """
        keys = frozenset(ids)
        owner = self.owners.get(owner_id)
        if self.require_existing_on_remove:
            self._ensure_existence(keys)
        logger.debug("unlinking children", relation=self.relation.name, count=len(keys))
        self._commit(owner_id, owner, unlinked(self.relation.fetch(owner), keys))

    def replace(self, owner_id: typing.Any, ids: typing.Iterable[typing.Any]) -> None:
        """
        Makes the children exactly the ones the owner is linked to.

        :param Any owner_id: The internal key of the owner.
        :param Iterable ids: The internal keys of the children.
        :raises ResourceNotFoundError: if the owner does not exist.
        :raises ChildResourceNotFoundError: if any of the children does not exist.
        """
        keys = frozenset(ids)
        owner = self.owners.get(owner_id)
        children = self._fetch_children(keys)
        logger.debug("relinking children", relation=self.relation.name, count=len(keys))
        self._commit(owner_id, owner, relinked(children))

    def __init__(
        self,
        owners: AggregateAccessor[Owner],
        children: AggregateAccessor[Child],
        relation: Relation[Owner, Child],
        require_existing_on_remove: bool = True,
    ):
        self.owners = owners
        self.children = children
        self.relation = relation
        self.require_existing_on_remove = require_existing_on_remove
