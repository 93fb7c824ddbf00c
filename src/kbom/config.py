"""Build identity and generation settings."""

import os
from dataclasses import dataclass
from typing import Optional

from kbom import __version__
from kbom.models import Tool
from kbom.options import OutputFormat, OutputTarget

APP_NAME = "kbom"
VENDOR = "KSOC Labs"

# Document dialect, fixed per build.
BOM_FORMAT = "ksoc"
SPEC_VERSION = "0.1"

ENV_PREFIX = "KBOM"

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _env(name: str) -> Optional[str]:
    return os.environ.get(f"{ENV_PREFIX}_{name}")


def default_tool() -> Tool:
    """Return the identity record for this build of the tool.

    Build time and commit details are injected by the release pipeline
    through ``KBOM_BUILD_TIME``, ``KBOM_COMMIT`` and ``KBOM_COMMIT_TIME``.
    """
    return Tool(
        vendor=VENDOR,
        name=APP_NAME,
        build_time=_env("BUILD_TIME") or "",
        version=__version__,
        commit=_env("COMMIT") or "",
        commit_time=_env("COMMIT_TIME") or "",
    )


@dataclass(frozen=True)
class ResolvedConfig:
    """Validated settings, ready for a run."""

    full: bool
    target: OutputTarget
    format: OutputFormat
    out_path: str
    timeout: Optional[float] = None


@dataclass
class GenerateConfig:
    """Settings for one ``kbom generate`` run."""

    # Reduced node/resource detail when True
    short: bool = False

    # "stdout" or "file"
    output: str = OutputTarget.STDOUT.value

    # "json" or "yaml"
    format: str = OutputFormat.JSON.value

    # Directory for file output
    out_path: str = "."

    # Cluster connection
    kubeconfig: Optional[str] = None
    context: Optional[str] = None
    in_cluster: bool = False

    # Seconds allowed for collecting all cluster facts (None = no limit)
    timeout: Optional[float] = None

    @property
    def full(self) -> bool:
        return not self.short

    @classmethod
    def from_dict(cls, data: dict) -> "GenerateConfig":
        """Create config from dictionary, falling back to ``KBOM_*`` variables."""
        short = data.get("short")
        if short is None:
            short = (_env("SHORT") or "").strip().lower() in _TRUE_VALUES
        timeout = data.get("timeout")
        return cls(
            short=bool(short),
            output=data.get("output") or _env("OUTPUT") or OutputTarget.STDOUT.value,
            format=data.get("format") or _env("FORMAT") or OutputFormat.JSON.value,
            out_path=data.get("out_path") or _env("OUT_PATH") or ".",
            kubeconfig=data.get("kubeconfig") or os.environ.get("KUBECONFIG"),
            context=data.get("context"),
            in_cluster=data.get("in_cluster", False),
            timeout=float(timeout) if timeout is not None else None,
        )

    def to_dict(self) -> dict:
        """Convert config to dictionary."""
        return {
            "short": self.short,
            "output": self.output,
            "format": self.format,
            "out_path": self.out_path,
            "kubeconfig": self.kubeconfig,
            "context": self.context,
            "in_cluster": self.in_cluster,
            "timeout": self.timeout,
        }

    def resolve(self) -> ResolvedConfig:
        """Validate format and output before anything is collected or opened.

        Raises:
            UnsupportedFormatError: If ``format`` is not json or yaml.
            UnsupportedOutputError: If ``output`` is not stdout or file.
        """
        fmt = OutputFormat.parse(self.format)
        target = OutputTarget.parse(self.output)
        return ResolvedConfig(
            full=self.full,
            target=target,
            format=fmt,
            out_path=self.out_path,
            timeout=self.timeout,
        )
