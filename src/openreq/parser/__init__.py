"""Document normalizer -- load documents and resolve same-document pointers.

Typical usage::

    from openreq.parser import load_document

    document = load_document("https://petstore3.swagger.io/api/v3/openapi.json")
    document.resolve("#/components/schemas/Pet")

Sub-modules:

* :mod:`~openreq.parser.loader` -- source dispatch plus JSON-then-YAML parsing.
* :mod:`~openreq.parser.resolver` -- lazy ``$ref`` pointer resolution.
* :mod:`~openreq.parser.document` -- the read-only :class:`Document` handle.
"""

from openreq.parser.document import Document
from openreq.parser.loader import load_document, load_from_settings, parse_content
from openreq.parser.resolver import resolve_pointer

__all__ = ["Document", "load_document", "load_from_settings", "parse_content", "resolve_pointer"]
