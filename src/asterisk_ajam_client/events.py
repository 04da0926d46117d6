"""Helpers for reading manager events out of ``mxml`` response documents.

The bridge wraps every AMI packet in ``<response><generic .../></response>``
elements under an ``<ajax-response>`` root. Each ``generic`` element carries the
packet fields as XML attributes; event packets include an ``event`` attribute.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from collections.abc import Iterator

from .errors import ProtocolError

SUCCESS = "Success"


def parse_document(body: str) -> ET.Element:
    """Parse an ``mxml`` body into its root element.

    Raises:
        ProtocolError: If *body* is not well-formed XML.

    """
    try:
        return ET.fromstring(body)
    except ET.ParseError as exc:
        raise ProtocolError(f"Malformed XML response: {exc}") from exc


def _records(document: ET.Element) -> Iterator[dict[str, str]]:
    for response in document.iter("response"):
        for generic in response.iter("generic"):
            if generic.attrib:
                yield {key.lower(): value for key, value in generic.attrib.items()}


def response_status(document: ET.Element) -> str | None:
    """Return the ``response`` attribute of the first record carrying one."""
    for record in _records(document):
        status = record.get("response")
        if status is not None:
            return status
    return None


def extract_events(document: ET.Element, name: str) -> Iterator[dict[str, str]]:
    """Yield the attribute mapping of every record whose ``event`` equals *name*.

    The ``event`` key itself is removed from each yielded mapping.
    """
    for record in _records(document):
        if record.get("event") == name:
            del record["event"]
            yield record
