"""Core primitives: HTTP access, errors, tagged results, and events."""

from .events import EventStream, WorkflowEvent
from .http_client import HttpClient, HttpRequest, HttpResponse
from .results import Err, Ok, Result, partition

__all__ = [
    "Err",
    "EventStream",
    "HttpClient",
    "HttpRequest",
    "HttpResponse",
    "Ok",
    "Result",
    "WorkflowEvent",
    "partition",
]
