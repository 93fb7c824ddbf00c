"""Encode KBOM documents as JSON or YAML."""

import json
from typing import TextIO

import yaml

from kbom.errors import SinkError, UnsupportedFormatError
from kbom.models import KBOM
from kbom.options import OutputFormat


def encode(document: KBOM, format: OutputFormat) -> str:
    """Encode a document.

    Args:
        document: The populated document.
        format: Target encoding.

    Returns:
        The encoded document, ending with a newline.

    Raises:
        UnsupportedFormatError: If ``format`` is not an OutputFormat.
    """
    data = document.to_dict()

    if format is OutputFormat.JSON:
        return json.dumps(data, indent=2, ensure_ascii=False) + "\n"
    if format is OutputFormat.YAML:
        return yaml.safe_dump(
            data,
            sort_keys=False,
            allow_unicode=True,
            default_flow_style=False,
        )
    raise UnsupportedFormatError(format)


def write(document: KBOM, format: OutputFormat, sink: TextIO) -> None:
    """Encode a document and write it to ``sink``.

    The document is encoded in full before the first write, so an encoding
    failure leaves the sink untouched.

    Raises:
        UnsupportedFormatError: If ``format`` is not an OutputFormat.
        SinkError: If writing to the sink fails.
    """
    content = encode(document, format)
    try:
        sink.write(content)
        sink.flush()
    except OSError as e:
        raise SinkError(
            f"failed to write KBOM: {e}", path=getattr(sink, "name", None)
        ) from e
