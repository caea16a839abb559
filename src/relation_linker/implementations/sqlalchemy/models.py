"""
The aggregates of the connector and the association tables materializing their relations.
Only the owner side of a relation is mapped.
"""

import typing
import uuid

import sqlalchemy as sa  # type: ignore
from sqlalchemy import orm  # type: ignore


class Base(orm.DeclarativeBase):
    pass


def association_table(name: str, owner_table: str, child_table: str) -> sa.Table:
    return sa.Table(
        name,
        Base.metadata,
        sa.Column("owner_id", sa.ForeignKey(f"{owner_table}.id"), primary_key=True),
        sa.Column("child_id", sa.ForeignKey(f"{child_table}.id"), primary_key=True),
    )


resource_representations = association_table(
    "resource_representations", "resources", "representations"
)
resource_contracts = association_table("resource_contracts", "resources", "contracts")
representation_artifacts = association_table(
    "representation_artifacts", "representations", "artifacts"
)
catalog_resources = association_table("catalog_resources", "catalogs", "resources")
contract_rules = association_table("contract_rules", "contracts", "rules")


class AggregateMixin:
    id: orm.Mapped[uuid.UUID] = orm.mapped_column(primary_key=True, default=uuid.uuid4)
    title: orm.Mapped[str] = orm.mapped_column(sa.String(255), default="")

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id!r}, title={self.title!r})"


class Artifact(AggregateMixin, Base):
    __tablename__ = "artifacts"


class ContractRule(AggregateMixin, Base):
    __tablename__ = "rules"


class Representation(AggregateMixin, Base):
    __tablename__ = "representations"

    artifacts: orm.Mapped[typing.Dict[uuid.UUID, Artifact]] = orm.relationship(
        secondary=representation_artifacts,
        collection_class=orm.attribute_keyed_dict("id"),
    )


class Contract(AggregateMixin, Base):
    __tablename__ = "contracts"

    rules: orm.Mapped[typing.Dict[uuid.UUID, ContractRule]] = orm.relationship(
        secondary=contract_rules,
        collection_class=orm.attribute_keyed_dict("id"),
    )


class OfferedResource(AggregateMixin, Base):
    __tablename__ = "resources"

    representations: orm.Mapped[typing.Dict[uuid.UUID, Representation]] = orm.relationship(
        secondary=resource_representations,
        collection_class=orm.attribute_keyed_dict("id"),
    )
    contracts: orm.Mapped[typing.Dict[uuid.UUID, Contract]] = orm.relationship(
        secondary=resource_contracts,
        collection_class=orm.attribute_keyed_dict("id"),
    )


class Catalog(AggregateMixin, Base):
    __tablename__ = "catalogs"

    offered_resources: orm.Mapped[typing.Dict[uuid.UUID, OfferedResource]] = orm.relationship(
        secondary=catalog_resources,
        collection_class=orm.attribute_keyed_dict("id"),
    )
