"""
Single entry point for converting documents to and from every format.

The format is always chosen explicitly by the caller; payloads are never
sniffed. The in-memory Document is the only pivot between formats: bytes
written in one format are not readable as another.
"""

import logging
from pathlib import Path
from typing import Union

from agsi.core.compact_binary import decode_compact, encode_compact
from agsi.core.json_export import encode_document
from agsi.core.json_import import decode_document
from agsi.core.models import Document
from agsi.core.schemas import Format
from agsi.core.wire_binary import decode_wire, encode_wire
from agsi.utils.file_io import read_payload, write_payload

logger = logging.getLogger(__name__)


def encode(document: Document, fmt: Union[Format, str] = Format.TEXT) -> bytes:
    """
    Encode a document.

    Args:
        document: Document to encode
        fmt: Target format (a Format or its name/value)

    Returns:
        Encoded payload (UTF-8 bytes for the text format)

    Raises:
        EncodeError: SchemaMismatch or UnsupportedField on failure
    """
    fmt = Format.parse(fmt)
    if fmt is Format.TEXT:
        return encode_document(document).encode('utf-8')
    if fmt is Format.COMPACT_BINARY:
        return encode_compact(document)
    if fmt is Format.WIRE_BINARY:
        return encode_wire(document)
    raise ValueError(f"Unhandled format {fmt}")


def decode(data: Union[bytes, str], fmt: Union[Format, str] = Format.TEXT) -> Document:
    """
    Decode a document.

    Args:
        data: Encoded payload (text is accepted for the text format)
        fmt: Source format

    Returns:
        Decoded document

    Raises:
        MalformedInput: If the payload cannot be decoded in that format
    """
    fmt = Format.parse(fmt)
    if fmt is Format.TEXT:
        return decode_document(data)
    if isinstance(data, str):
        raise TypeError(f"{fmt.value} payloads must be bytes, not str")
    if fmt is Format.COMPACT_BINARY:
        return decode_compact(data)
    if fmt is Format.WIRE_BINARY:
        return decode_wire(data)
    raise ValueError(f"Unhandled format {fmt}")


def convert(data: Union[bytes, str], source: Union[Format, str],
            target: Union[Format, str]) -> bytes:
    """Re-encode a payload in another format, pivoting through a Document."""
    return encode(decode(data, source), target)


def save_document(document: Document, path: Union[str, Path],
                  fmt: Union[Format, str] = Format.TEXT, compress: bool = False) -> Path:
    """
    Encode a document and write it to a file.

    Args:
        document: Document to save
        path: Output path (``.gz`` paths are gzipped)
        fmt: Target format
        compress: Gzip the payload

    Returns:
        Path actually written
    """
    fmt = Format.parse(fmt)
    output_path = write_payload(path, encode(document, fmt), compress)
    logger.info(f"Saved document {document.id} as {fmt.value} to {output_path}")
    return output_path


def load_document(path: Union[str, Path], fmt: Union[Format, str] = Format.TEXT) -> Document:
    """
    Read a file and decode the document it holds.

    Args:
        path: Input path (``.gz`` files are decompressed)
        fmt: Source format

    Returns:
        Decoded document
    """
    fmt = Format.parse(fmt)
    document = decode(read_payload(path), fmt)
    logger.info(f"Loaded document {document.id} from {path}")
    return document
