"""
Wires the relations of the connector's aggregates to FastAPI routes.

.. code-block:: python

   config = LinkerConfig.load("linker.yaml")
   app = build_app(orm.sessionmaker(open_engine(config)), config)

Every request runs in a session of its own, which is committed once the request has
been served, and rolled back and closed otherwise.
"""

import dataclasses
import typing
import urllib.parse

import sqlalchemy as sa  # type: ignore
import structlog
from fastapi import APIRouter, FastAPI
from sqlalchemy import orm, pool  # type: ignore

from ...config import LinkerConfig, configure_logging
from ...endpoint import RelationEndpoint, add_relation_routes, create_app
from ...identifiers import PathIdentifierResolver
from ...interfaces import IdentifierResolver
from ...linker import RelationLinker
from .core import SQLAAccessor, SQLARelation, default_resource_type
from .models import (
    Artifact,
    Base,
    Catalog,
    Contract,
    ContractRule,
    OfferedResource,
    Representation,
)

logger = structlog.get_logger()

SessionFactory = typing.Callable[[], orm.Session]


@dataclasses.dataclass(frozen=True)
class RelationRoute:
    owner: type
    attr: str
    child: type
    path: typing.Optional[str] = None

    @property
    def relation(self) -> str:
        return self.attr if self.path is None else self.path


RELATION_ROUTES: typing.Sequence[RelationRoute] = (
    RelationRoute(OfferedResource, "representations", Representation),
    RelationRoute(OfferedResource, "contracts", Contract),
    RelationRoute(Representation, "artifacts", Artifact),
    RelationRoute(Catalog, "offered_resources", OfferedResource, path="resources"),
    RelationRoute(Contract, "rules", ContractRule),
)


def open_engine(config: LinkerConfig) -> sa.engine.Engine:
    url = sa.engine.make_url(config.database_url)
    kwargs: typing.Dict[str, typing.Any] = {}
    if url.get_backend_name() == "sqlite":
        kwargs["connect_args"] = {"check_same_thread": False}
        if url.database in (None, "", ":memory:"):
            # one connection, or every session would see a database of its own
            kwargs["poolclass"] = pool.StaticPool
    engine = sa.create_engine(url, **kwargs)
    Base.metadata.create_all(engine)
    return engine


def endpoint_provider(
    session_factory: SessionFactory,
    resolver: IdentifierResolver,
    config: LinkerConfig,
    route: RelationRoute,
) -> typing.Callable[[], typing.Iterator[RelationEndpoint]]:
    """
    Returns a FastAPI dependency giving a :py:class:`RelationEndpoint` for ``route``
    bound to a session opened for the request.
    """
    relation = SQLARelation(route.owner, route.attr)

    def provide_endpoint() -> typing.Iterator[RelationEndpoint]:
        session = session_factory()
        try:
            owners = SQLAAccessor(
                session, route.owner, lock_for_update=config.lock_owner_rows, autocommit=False
            )
            children = SQLAAccessor(session, route.child, autocommit=False)
            linker = RelationLinker(
                owners,
                children,
                relation,
                require_existing_on_remove=config.require_existing_on_remove,
            )
            yield RelationEndpoint(linker, resolver, owners.resource_type, children.resource_type)
            session.commit()
        finally:
            session.close()

    return provide_endpoint


def build_app(
    session_factory: SessionFactory,
    config: LinkerConfig,
    routes: typing.Iterable[RelationRoute] = RELATION_ROUTES,
) -> FastAPI:
    routes = tuple(routes)
    all_types = {
        default_resource_type(sa.inspect(class_))
        for route in routes
        for class_ in (route.owner, route.child)
    }
    resolver = PathIdentifierResolver(config.base_url, all_types)
    router = APIRouter()
    for route in routes:
        add_relation_routes(
            router,
            default_resource_type(sa.inspect(route.owner)),
            route.relation,
            endpoint_provider(session_factory, resolver, config, route),
        )
    prefix = urllib.parse.urlsplit(resolver.base_url).path
    logger.info("relation routes ready", prefix=prefix, count=len(routes))
    return create_app(router, prefix=prefix)


def load_app(config_path: str) -> FastAPI:
    """
    Builds the application described by a YAML configuration file.
    """
    config = LinkerConfig.load(config_path)
    configure_logging(config.log_level)
    return build_app(orm.sessionmaker(open_engine(config)), config)
