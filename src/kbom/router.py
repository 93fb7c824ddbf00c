"""Choose and open the sink a KBOM is written to."""

import logging
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterator, Optional, TextIO

from kbom.errors import UnsupportedOutputError, SinkError
from kbom.models import KBOM
from kbom.options import OutputFormat, OutputTarget

logger = logging.getLogger(__name__)

FINGERPRINT_LENGTH = 8
TIMESTAMP_FORMAT = "%Y-%m-%d-%H-%M-%S"


def fingerprint(document: KBOM) -> str:
    """Short cluster-distinguishing key: CA digest prefix, else id prefix."""
    digest = document.cluster.ca_cert_digest
    if len(digest) > FINGERPRINT_LENGTH:
        return digest[:FINGERPRINT_LENGTH]
    return document.id[:FINGERPRINT_LENGTH]


def kbom_filename(document: KBOM, format: OutputFormat) -> str:
    """Return ``kbom-<fingerprint>-<timestamp>.<ext>`` for a document."""
    timestamp = document.generated_at.strftime(TIMESTAMP_FORMAT)
    return f"kbom-{fingerprint(document)}-{timestamp}.{format.extension}"


@contextmanager
def _released(stream: TextIO, release: Callable[[], None]) -> Iterator[TextIO]:
    """Yield ``stream`` and call ``release`` on every exit path.

    A release failure is raised as SinkError unless another error is already
    propagating, which then takes precedence.
    """
    try:
        yield stream
    except BaseException:
        try:
            release()
        except OSError as e:
            logger.debug(f"Ignoring release failure after error: {e}")
        raise
    try:
        release()
    except OSError as e:
        name = getattr(stream, "name", None)
        raise SinkError(f"failed to finish writing KBOM: {e}", path=name) from e


@contextmanager
def open_sink(
    target: OutputTarget,
    out_dir: str | Path,
    document: KBOM,
    format: OutputFormat,
    stdout: Optional[TextIO] = None,
) -> Iterator[TextIO]:
    """Open the sink for ``target`` and release it on exit.

    Standard output is flushed but never closed. A file sink is created new
    in ``out_dir`` and closed on every exit path; if writing fails part way
    the file is left as it is. The file sink's ``name`` is the path written.

    Args:
        target: Where to write.
        out_dir: Directory for file output.
        document: Document being written, used to name the file.
        format: Encoding, used for the file extension.
        stdout: Stream to use instead of ``sys.stdout``.

    Raises:
        UnsupportedOutputError: If ``target`` is not an OutputTarget.
        SinkError: If the file cannot be created, or the sink cannot be
            flushed or closed.
    """
    if target is OutputTarget.STDOUT:
        stream = stdout if stdout is not None else sys.stdout
        with _released(stream, stream.flush):
            yield stream
        return

    if target is not OutputTarget.FILE:
        raise UnsupportedOutputError(target)

    path = Path(out_dir) / kbom_filename(document, format)
    try:
        handle = open(str(path), "x", encoding="utf-8")
    except OSError as e:
        raise SinkError(f"failed to create {path}: {e}", path=str(path)) from e

    logger.debug(f"Opened {path}")
    with _released(handle, handle.close):
        yield handle
