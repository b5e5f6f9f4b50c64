# Copyright (c) Meta Platforms, Inc. and affiliates.

"""
Compression utilities for recorded event files.

Event files are NDJSON, either plain or Zstd-compressed. A compressed file
may consist of several independent Zstd frames appended together, as
produced by recorders that flush periodically.
"""

import io
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, TextIO, Union

import zstandard as zstd

# Zstd magic number (little-endian): 0xFD2FB528
ZSTD_MAGIC = b"\x28\xb5\x2f\xfd"

# Invalid UTF-8 decodes to lone surrogates; readers reject those lines one by one
DECODE_ERRORS = "surrogateescape"


def detect_compression(filepath: Union[str, Path]) -> str:
    """
    Detect the compression of an event file from its magic number.

    Args:
        filepath: Path to the file to check

    Returns:
        Compression type: "zstd" or "none"

    Raises:
        FileNotFoundError: If file does not exist
    """
    filepath = Path(filepath)

    if not filepath.exists():
        raise FileNotFoundError(f"File not found: {filepath}")

    with open(filepath, "rb") as f:
        if f.read(4) == ZSTD_MAGIC:
            return "zstd"

    return "none"


@contextmanager
def open_event_file(filepath: Union[str, Path]) -> Iterator[TextIO]:
    """
    Open an event file for reading text, decompressing if needed.

    Example:
        >>> with open_event_file("session.ndjson.zst") as f:
        ...     for line in f:
        ...         handle(line)
    """
    filepath = Path(filepath)
    compression = detect_compression(filepath)

    if compression == "zstd":
        # stream_reader handles concatenated frames
        dctx = zstd.ZstdDecompressor()
        with open(filepath, "rb") as binary_file:
            with dctx.stream_reader(binary_file, read_across_frames=True) as reader:
                with io.TextIOWrapper(
                    reader, encoding="utf-8", errors=DECODE_ERRORS
                ) as text_stream:
                    yield text_stream
    else:
        with open(filepath, "r", encoding="utf-8", errors=DECODE_ERRORS) as f:
            yield f

