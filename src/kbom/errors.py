"""Exceptions raised while generating a KBOM."""

from typing import Optional


class KBOMError(Exception):
    """Base class for KBOM generation errors."""
    pass


class CollectionError(KBOMError):
    """A cluster fact could not be collected."""

    def __init__(self, step: str, cause: BaseException):
        self.step = step
        self.cause = cause
        super().__init__(f"failed to collect {step}: {cause}")


class UnsupportedFormatError(KBOMError, ValueError):
    """Requested output format is not supported."""

    def __init__(self, value: object):
        self.value = value
        super().__init__(f"format {value!r} is not supported")


class UnsupportedOutputError(KBOMError, ValueError):
    """Requested output target is not supported."""

    def __init__(self, value: object):
        self.value = value
        super().__init__(f"output {value!r} is not supported")


class SinkError(KBOMError):
    """The output sink could not be created or written to."""

    def __init__(self, message: str, path: Optional[str] = None):
        self.path = path
        super().__init__(message)
