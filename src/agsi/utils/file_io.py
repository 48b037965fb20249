"""
File glue for serialized documents.

Payloads are written and read as raw bytes; gzip is applied when requested
or when the path already carries the ``.gz`` suffix.
"""

import gzip
import logging
from pathlib import Path
from typing import Union

from agsi.utils.constants import GZIP_SUFFIX

logger = logging.getLogger(__name__)


def is_gzip_path(path: Union[str, Path]) -> bool:
    return Path(path).suffix.lower() == GZIP_SUFFIX


def write_payload(path: Union[str, Path], data: bytes, compress: bool = False) -> Path:
    """
    Write an encoded payload to disk.

    Args:
        path: Output file path
        data: Encoded document
        compress: Gzip the payload (adds the ``.gz`` suffix if missing)

    Returns:
        Path actually written
    """
    output_path = Path(path)
    if compress and not is_gzip_path(output_path):
        output_path = output_path.with_name(output_path.name + GZIP_SUFFIX)

    if compress or is_gzip_path(output_path):
        with gzip.open(output_path, 'wb') as f:
            f.write(data)
    else:
        with open(output_path, 'wb') as f:
            f.write(data)

    logger.info(f"Wrote {len(data)} bytes to {output_path}")
    return output_path


def read_payload(path: Union[str, Path]) -> bytes:
    """Read an encoded payload, decompressing ``.gz`` files."""
    input_path = Path(path)
    if is_gzip_path(input_path):
        with gzip.open(input_path, 'rb') as f:
            data = f.read()
    else:
        with open(input_path, 'rb') as f:
            data = f.read()
    logger.debug(f"Read {len(data)} bytes from {input_path}")
    return data
