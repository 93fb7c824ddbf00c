"""Output format and output target selectors."""

from enum import Enum

from kbom.errors import UnsupportedFormatError, UnsupportedOutputError


class OutputFormat(Enum):
    """Supported document encodings."""

    JSON = "json"
    YAML = "yaml"

    @property
    def extension(self) -> str:
        """File extension used for this format."""
        return self.value

    @classmethod
    def parse(cls, value: "str | OutputFormat") -> "OutputFormat":
        """Resolve a user supplied format name.

        Raises:
            UnsupportedFormatError: If the value names no supported format.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        raise UnsupportedFormatError(value)


class OutputTarget(Enum):
    """Where the document is written."""

    STDOUT = "stdout"
    FILE = "file"

    @classmethod
    def parse(cls, value: "str | OutputTarget") -> "OutputTarget":
        """Resolve a user supplied output name.

        Raises:
            UnsupportedOutputError: If the value names no supported output.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        raise UnsupportedOutputError(value)
