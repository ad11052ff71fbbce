"""Decoders for the XML control documents of the storage protocol.

Only decoding is needed: requests carry raw bodies, never XML.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET

from mdsclient.infra.storage.client import CompleteInfo, DownloadInfo, UploadInfo
from mdsclient.infra.storage.errors import (
    ErrorBody,
    InvalidFieldError,
    MalformedDocumentError,
    MissingFieldError,
)

UPLOAD_DOCUMENT = "upload"
COMPLETE_DOCUMENT = "upload/complete"
DOWNLOAD_DOCUMENT = "download-info"

_ERROR_MESSAGE_TAGS = ("message", "Message", "error", "description")


def _parse(data: bytes | str, document: str) -> ET.Element:
    try:
        return ET.fromstring(data)
    except ET.ParseError as exc:
        raise MalformedDocumentError(
            f"{document} document is not well-formed XML: {exc}"
        ) from exc


def _attr(elem: ET.Element, name: str, document: str) -> str:
    value = elem.get(name)
    if value is None:
        raise MissingFieldError(document, name)
    return value


def _child_text(elem: ET.Element, name: str, document: str) -> str:
    child = elem.find(name)
    text = (child.text or "").strip() if child is not None else ""
    # An empty element carries no value either.
    if not text:
        raise MissingFieldError(document, name)
    return text


def _as_int(value: str, name: str, document: str, *, minimum: int | None = None) -> int:
    try:
        number = int(value.strip())
    except ValueError as exc:
        raise InvalidFieldError(document, name, value) from exc
    if minimum is not None and number < minimum:
        raise InvalidFieldError(document, name, value)
    return number


def _decode_complete(elem: ET.Element) -> CompleteInfo:
    doc = COMPLETE_DOCUMENT
    return CompleteInfo(
        addr=_attr(elem, "addr", doc),
        path=_attr(elem, "path", doc),
        group=_as_int(_attr(elem, "group", doc), "group", doc),
        status=_as_int(_attr(elem, "status", doc), "status", doc),
    )


def decode_upload_info(data: bytes | str) -> UploadInfo:
    """Decode an upload acknowledgement.

    Example document::

        <post obj="ns.file1" id="..." groups="2" size="4" key="3402/file1">
          <complete addr="192.168.1.1:1025" path="/srv/..." group="4643" status="0"/>
          <written>2</written>
        </post>

    Raises:
        MalformedDocumentError: If ``data`` is not well-formed XML.
        MissingFieldError: If a required attribute or element is absent.
        InvalidFieldError: If a numeric field cannot be parsed.
    """
    doc = UPLOAD_DOCUMENT
    root = _parse(data, doc)
    return UploadInfo(
        id=_attr(root, "id", doc),
        obj=_attr(root, "obj", doc),
        key=_attr(root, "key", doc),
        size=_as_int(_attr(root, "size", doc), "size", doc, minimum=0),
        groups=_as_int(_attr(root, "groups", doc), "groups", doc, minimum=0),
        complete=tuple(_decode_complete(elem) for elem in root.findall("complete")),
        written=_as_int(_child_text(root, "written", doc), "written", doc, minimum=0),
    )


def decode_download_info(data: bytes | str) -> DownloadInfo:
    """Decode a download descriptor (``<download-info>``).

    Raises:
        MalformedDocumentError: If ``data`` is not well-formed XML.
        MissingFieldError: If a required element is absent.
        InvalidFieldError: If ``region`` is not an integer.
    """
    doc = DOWNLOAD_DOCUMENT
    root = _parse(data, doc)
    return DownloadInfo(
        host=_child_text(root, "host", doc),
        path=_child_text(root, "path", doc),
        ts=_child_text(root, "ts", doc),
        region=_as_int(_child_text(root, "region", doc), "region", doc),
        sign=_child_text(root, "s", doc),
    )


def decode_error_body(data: bytes | str) -> ErrorBody | None:
    """Best-effort parse of an XML error body.

    Returns None when the body is empty or not XML; an error response without
    a structured body is not itself a failure.
    """
    if not data or not data.strip():
        return None
    try:
        root = ET.fromstring(data)
    except ET.ParseError:
        return None

    fields = dict(root.attrib)
    for child in root:
        if len(child) == 0 and child.text and child.text.strip():
            fields.setdefault(child.tag, child.text.strip())

    message = None
    for tag in _ERROR_MESSAGE_TAGS:
        if tag in fields:
            message = fields[tag]
            break
    if message is None and root.text and root.text.strip():
        message = root.text.strip()

    return ErrorBody(tag=root.tag, message=message, fields=fields)
