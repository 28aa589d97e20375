"""openreq -- turn any OpenAPI/Swagger document into invocable HTTP requests.

The engine parses a loosely structured, externally authored document,
lists its operations, resolves one operation's parameter and body contracts,
validates caller-supplied values against them, and assembles the path,
query string, headers and body of a transport-ready request.

Typical usage::

    from openreq import assemble_request, get_operation, list_operations, load_document

    document = load_document("petstore.yaml")
    for entry in list_operations(document):
        print(entry.key, entry.name)

    operation = get_operation(document, "get|/pets/{petId}")
    request = assemble_request(
        operation, {"path|petId": 7}, base_url=document.base_url
    )

Modules:
    parser: Document loading and same-document reference resolution.
    catalog: Ordered operation catalog.
    operations: Parameter and request-body descriptors for one operation.
    assembler: Validation and request assembly.
    runner: Sequential (and bounded-async) batch execution.
    client: httpx transports.
    auth: Credential injection rules for the transports.
    config: Profiles and precedence resolution.
    output: stdout/stderr formatting with Rich.
    app: Typer CLI.
"""

from openreq.assembler import assemble_request, build_request
from openreq.catalog import list_operations
from openreq.operations import get_operation
from openreq.parser import Document, load_document
from openreq.runner import run_batch, run_batch_async

__version__ = "0.1.0"

__all__ = [
    "Document",
    "assemble_request",
    "build_request",
    "get_operation",
    "list_operations",
    "load_document",
    "run_batch",
    "run_batch_async",
]
