"""
:py:mod:`relation_linker.serde.renderer` renders the internal representation of response
bodies to JSON-compatible values.

Synopsis
--------

.. code-block:: python

   import json

   from relation_linker.serde.renderer import ReprRenderer

   renderer = ReprRenderer()

   print(json.dumps(renderer(IdentifierListRepr(["/api/v2/representations/…"]))))

"""

import typing
from collections import OrderedDict

from .models import ErrorDocumentRepr, ErrorRepr, IdentifierListRepr, SourceRepr
from .types import JSONValue, MutableJSONObject


class ReprRenderer:
    _sort_identifiers: bool = True

    def _dict_factory(self, items: typing.Iterable[typing.Tuple[str, typing.Any]]):
        return OrderedDict(items)

    def _render_identifier_list(self, repr_: IdentifierListRepr) -> typing.List[str]:
        values = repr_.values()
        return sorted(values) if self._sort_identifiers else values

    def _render_source(self, repr_: SourceRepr) -> MutableJSONObject:
        retval: MutableJSONObject = self._dict_factory(())
        if repr_.pointer is not None:
            retval["pointer"] = repr_.pointer
        if repr_.parameter is not None:
            retval["parameter"] = repr_.parameter
        return retval

    def _render_error(self, repr_: ErrorRepr) -> MutableJSONObject:
        retval: MutableJSONObject = self._dict_factory(())
        if repr_.status is not None:
            retval["status"] = repr_.status
        if repr_.code is not None:
            retval["code"] = repr_.code
        if repr_.title is not None:
            retval["title"] = repr_.title
        if repr_.detail is not None:
            retval["detail"] = repr_.detail
        if repr_.source is not None:
            retval["source"] = self._render_source(repr_.source)
        return retval

    def _render_error_document(self, repr_: ErrorDocumentRepr) -> MutableJSONObject:
        retval: MutableJSONObject = self._dict_factory(())
        retval["errors"] = [self._render_error(e) for e in repr_.errors]
        if repr_.meta:
            retval["meta"] = repr_.meta
        return retval

    def __call__(self, repr_: typing.Union[IdentifierListRepr, ErrorDocumentRepr]) -> JSONValue:
        if isinstance(repr_, IdentifierListRepr):
            return self._render_identifier_list(repr_)
        elif isinstance(repr_, ErrorDocumentRepr):
            return self._render_error_document(repr_)
        else:
            raise AssertionError("never get here")

    def __init__(self, sort_identifiers: bool = True):
        self._sort_identifiers = sort_identifiers
