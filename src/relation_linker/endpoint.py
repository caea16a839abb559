import http
import typing

import structlog
from fastapi import APIRouter, Body, Depends, FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.routing import APIRoute

from .exceptions import (
    InvalidDeclarationError,
    InvalidIdentifierError,
    RelationLinkerException,
    ResourceNotFoundError,
    StaleResourceError,
    ValidationError,
)
from .interfaces import IdentifierResolver
from .linker import RelationLinker
from .serde.deserializer import IdentifierListDeserializer
from .serde.exceptions import DeserializationError, DeserializationErrorItem
from .serde.models import ErrorDocumentRepr, ErrorRepr, IdentifierListRepr, SourceRepr
from .serde.renderer import ReprRenderer
from .serde.types import JSONValue
from .serde.utils import JSONPointer
from .utils import assert_type

logger = structlog.get_logger()


def _error(status: http.HTTPStatus, detail: str, source: typing.Optional[SourceRepr] = None):
    return ErrorRepr(
        status=str(status.value),
        title=status.phrase,
        detail=detail,
        source=source,
    )


def build_error_document(exc: Exception) -> typing.Tuple[http.HTTPStatus, ErrorDocumentRepr]:
    """
    Translates an exception raised while serving a relation request into a status and
    an error document.

    :raises Exception: ``exc`` itself if it is not a client-side failure.
    """
    status: http.HTTPStatus
    if isinstance(exc, DeserializationError):
        status = http.HTTPStatus.BAD_REQUEST
        return status, ErrorDocumentRepr(
            [_error(status, e.message, SourceRepr(pointer=str(e.pointer))) for e in exc.errors]
        )
    elif isinstance(exc, ResourceNotFoundError):
        status = http.HTTPStatus.NOT_FOUND
    elif isinstance(exc, (ValidationError, InvalidIdentifierError)):
        status = http.HTTPStatus.BAD_REQUEST
    elif isinstance(exc, StaleResourceError):
        status = http.HTTPStatus.CONFLICT
    else:
        raise exc
    message = assert_type(RelationLinkerException, exc).message
    return status, ErrorDocumentRepr([_error(status, message)])


def build_validation_error_document(exc: RequestValidationError) -> ErrorDocumentRepr:
    """
    Translates the errors found by FastAPI while validating a request into an error
    document.  Errors in the body point at the offending value.
    """
    status = http.HTTPStatus.BAD_REQUEST
    errors = []
    for e in exc.errors():
        where, *rest = e["loc"]
        if where == "body":
            # the location of a JSON syntax error is an offset, not a path
            components = () if e["type"] == "json_invalid" else rest
            source = SourceRepr(pointer=str(JSONPointer(*(str(c) for c in components))))
        else:
            source = SourceRepr(parameter=str(rest[-1]) if rest else str(where))
        errors.append(_error(status, e["msg"], source))
    return ErrorDocumentRepr(errors)


class RelationEndpoint:
    """
    A :py:class:`RelationEndpoint` serves the four verbs of a relation of one owner type
    by delegating to a :py:class:`RelationLinker`.

    ============ ============================== ===================================
    Verb         Linker call                    Response
    ============ ============================== ===================================
    ``GET``      :py:meth:`RelationLinker.get`      200, the linked identifiers
    ``POST``     ``add`` then ``get``               200, the linked identifiers
    ``PUT``      ``replace``                        204
    ``DELETE``   ``remove``                         204
    ============ ============================== ===================================

    Failures are raised as they are; :py:func:`install_error_handlers` turns them into
    error documents.

    :param RelationLinker linker: The linker to delegate to.
    :param IdentifierResolver resolver: The resolver for the external identifiers.
    :param str owner_type: The resource type of the owners.
    :param str child_type: The resource type of the children.
    """

    linker: RelationLinker
    resolver: IdentifierResolver
    owner_type: str
    child_type: str
    deserializer: IdentifierListDeserializer
    renderer: ReprRenderer

    def _resolve(self, identifier: str, expected_type: str) -> typing.Any:
        external_id = self.resolver.resolve(identifier)
        if external_id.type != expected_type:
            raise InvalidIdentifierError(identifier, f"{expected_type} expected")
        return external_id.key

    def _resolve_children(self, body: JSONValue) -> typing.FrozenSet[typing.Any]:
        repr_ = self.deserializer(body)
        keys = set()
        errors: typing.List[DeserializationErrorItem] = []
        for item in repr_.items:
            try:
                keys.add(self._resolve(item.value, self.child_type))
            except InvalidIdentifierError as e:
                errors.append(
                    DeserializationErrorItem(assert_type(JSONPointer, item._source_), e.message)
                )
        if errors:
            raise DeserializationError(body, errors)
        return frozenset(keys)

    def _render_children(self, keys: typing.Iterable[typing.Any]) -> JSONValue:
        return self.renderer(
            IdentifierListRepr(self.resolver.to_external(self.child_type, key) for key in keys)
        )

    def owner_identifier(self, key: typing.Any) -> str:
        return self.resolver.to_external(self.owner_type, key)

    def get(self, owner_id: str) -> JSONValue:
        return self._render_children(self.linker.get(self._resolve(owner_id, self.owner_type)))

    def post(self, owner_id: str, body: JSONValue) -> JSONValue:
        key = self._resolve(owner_id, self.owner_type)
        self.linker.add(key, self._resolve_children(body))
        return self._render_children(self.linker.get(key))

    def put(self, owner_id: str, body: JSONValue) -> None:
        key = self._resolve(owner_id, self.owner_type)
        self.linker.replace(key, self._resolve_children(body))

    def delete(self, owner_id: str, body: JSONValue) -> None:
        key = self._resolve(owner_id, self.owner_type)
        self.linker.remove(key, self._resolve_children(body))

    def __init__(
        self,
        linker: RelationLinker,
        resolver: IdentifierResolver,
        owner_type: str,
        child_type: str,
        deserializer: typing.Optional[IdentifierListDeserializer] = None,
        renderer: typing.Optional[ReprRenderer] = None,
    ):
        self.linker = linker
        self.resolver = resolver
        self.owner_type = owner_type
        self.child_type = child_type
        self.deserializer = IdentifierListDeserializer() if deserializer is None else deserializer
        self.renderer = ReprRenderer() if renderer is None else renderer


EndpointProvider = typing.Callable[..., typing.Any]


def add_relation_routes(
    router: APIRouter, owner_type: str, relation: str, provide_endpoint: EndpointProvider
) -> None:
    """
    Adds ``GET``, ``POST``, ``PUT`` and ``DELETE`` routes on
    ``/{owner_type}/{owner_id}/{relation}`` to ``router``.

    :param APIRouter router: The router to add the routes to.
    :param str owner_type: The resource type of the owners.
    :param str relation: The last path component of the routes.
    :param EndpointProvider provide_endpoint: A FastAPI dependency giving the
                                              :py:class:`RelationEndpoint` serving a request.
    :raises InvalidDeclarationError: if the routes are already there.
    """
    path = f"/{owner_type}/{{owner_id}}/{relation}"
    if any(isinstance(r, APIRoute) and r.path == path for r in router.routes):
        raise InvalidDeclarationError(f"relation {relation} of {owner_type} is already registered")

    def get_children(
        owner_id: str, endpoint: RelationEndpoint = Depends(provide_endpoint)
    ) -> JSONResponse:
        return JSONResponse(endpoint.get(endpoint.owner_identifier(owner_id)))

    def add_children(
        owner_id: str,
        children: typing.List[str] = Body(...),
        endpoint: RelationEndpoint = Depends(provide_endpoint),
    ) -> JSONResponse:
        return JSONResponse(endpoint.post(endpoint.owner_identifier(owner_id), children))

    def replace_children(
        owner_id: str,
        children: typing.List[str] = Body(...),
        endpoint: RelationEndpoint = Depends(provide_endpoint),
    ) -> Response:
        endpoint.put(endpoint.owner_identifier(owner_id), children)
        return Response(status_code=http.HTTPStatus.NO_CONTENT.value)

    def remove_children(
        owner_id: str,
        children: typing.List[str] = Body(...),
        endpoint: RelationEndpoint = Depends(provide_endpoint),
    ) -> Response:
        endpoint.delete(endpoint.owner_identifier(owner_id), children)
        return Response(status_code=http.HTTPStatus.NO_CONTENT.value)

    name = f"{owner_type}_{relation}"
    router.add_api_route(path, get_children, methods=["GET"], name=f"get_{name}")
    router.add_api_route(path, add_children, methods=["POST"], name=f"add_{name}")
    router.add_api_route(
        path, replace_children, methods=["PUT"], name=f"replace_{name}", status_code=204
    )
    router.add_api_route(
        path, remove_children, methods=["DELETE"], name=f"remove_{name}", status_code=204
    )
    logger.debug("route registered", owner_type=owner_type, relation=relation)


def install_error_handlers(app: FastAPI, renderer: typing.Optional[ReprRenderer] = None) -> None:
    """
    Makes ``app`` answer client-side failures of the relation routes with error documents.
    """
    if renderer is None:
        renderer = ReprRenderer()

    def respond(request: Request, status: http.HTTPStatus, doc: ErrorDocumentRepr, reason: str):
        logger.warning(
            "relation request rejected",
            method=request.method,
            path=request.url.path,
            status=status.value,
            reason=reason,
        )
        return JSONResponse(renderer(doc), status_code=status.value)

    async def relation_error(request: Request, exc: Exception) -> JSONResponse:
        status, doc = build_error_document(exc)
        return respond(request, status, doc, str(exc))

    async def request_validation_error(request: Request, exc: Exception) -> JSONResponse:
        doc = build_validation_error_document(assert_type(RequestValidationError, exc))
        return respond(request, http.HTTPStatus.BAD_REQUEST, doc, "invalid request")

    app.add_exception_handler(RelationLinkerException, relation_error)
    app.add_exception_handler(DeserializationError, relation_error)
    app.add_exception_handler(RequestValidationError, request_validation_error)


def create_app(
    router: APIRouter, prefix: str = "", renderer: typing.Optional[ReprRenderer] = None
) -> FastAPI:
    """
    Builds a FastAPI application serving the relation routes of ``router`` under ``prefix``.
    """
    app = FastAPI()
    app.include_router(router, prefix=prefix.rstrip("/"), tags=["Relations"])
    install_error_handlers(app, renderer)
    return app
