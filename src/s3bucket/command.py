"""
Command ADTs: one variant per S3 operation.

A command fixes the HTTP verb, whether a body is sent, and which query
parameters the request carries. Commands are created per call and consumed by
the request assembler.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal


@dataclass(frozen=True)
class Get:
    """Fetch an object."""

    kind: Literal["Get"] = "Get"


@dataclass(frozen=True)
class Delete:
    """Delete an object."""

    kind: Literal["Delete"] = "Delete"


@dataclass(frozen=True)
class Put:
    """Upload an object.

    Attributes:
        content: Object bytes
        content_type: MIME type sent as ``Content-Type``
    """

    content: bytes = field(default=b"", repr=False)
    content_type: str = "application/octet-stream"
    kind: Literal["Put"] = "Put"


@dataclass(frozen=True)
class List:
    """One ListObjectsV2 page.

    Attributes:
        prefix: Key prefix filter ("" lists everything)
        delimiter: Grouping delimiter, usually "/"
        continuation_token: Cursor from the previous page, None for the first
    """

    prefix: str = ""
    delimiter: str | None = None
    continuation_token: str | None = None
    kind: Literal["List"] = "List"


Command = Get | Delete | Put | List


def http_verb(command: Command) -> str:
    match command:
        case Get() | List():
            return "GET"
        case Put():
            return "PUT"
        case Delete():
            return "DELETE"


def command_body(command: Command) -> bytes:
    """Body bytes sent with the command (empty unless Put)."""
    match command:
        case Put(content=content):
            return content
        case _:
            return b""


def command_query(command: Command) -> dict[str, str]:
    """Query parameters the command adds to the URL."""
    match command:
        case List(prefix=prefix, delimiter=delimiter, continuation_token=token):
            query = {"list-type": "2", "prefix": prefix}
            if delimiter is not None:
                query["delimiter"] = delimiter
            if token is not None:
                query["continuation-token"] = token
            return query
        case _:
            return {}


__all__ = [
    "Command",
    "Delete",
    "Get",
    "List",
    "Put",
    "command_body",
    "command_query",
    "http_verb",
]
