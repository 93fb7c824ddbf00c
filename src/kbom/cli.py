"""Command-line interface for kbom."""

import logging
import sys
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler

from kbom import __version__
from kbom.config import APP_NAME, ENV_PREFIX, GenerateConfig, default_tool
from kbom.errors import KBOMError
from kbom.generate import generate
from kbom.kube import KubernetesFactSource
from kbom.options import OutputFormat, OutputTarget

# The document is the only thing written to stdout.
console = Console(stderr=True)


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


@click.group()
@click.version_option(version=__version__, prog_name=APP_NAME)
def main() -> None:
    """kbom - Kubernetes Bill of Materials generator."""
    pass


@main.command("generate")
@click.option(
    "--short",
    is_flag=True,
    envvar=f"{ENV_PREFIX}_SHORT",
    help="Short - only include metadata, nodes, images and resources counters",
)
@click.option(
    "--output",
    "-o",
    default=OutputTarget.STDOUT.value,
    envvar=f"{ENV_PREFIX}_OUTPUT",
    show_default=True,
    help="Output (stdout, file)",
)
@click.option(
    "--format",
    "-f",
    default=OutputFormat.JSON.value,
    envvar=f"{ENV_PREFIX}_FORMAT",
    show_default=True,
    help="Format (json, yaml)",
)
@click.option(
    "--out-path",
    "-p",
    default=".",
    envvar=f"{ENV_PREFIX}_OUT_PATH",
    show_default=True,
    help="Path to write KBOM to",
)
@click.option("--kubeconfig", type=click.Path(), envvar="KUBECONFIG", help="Path to kubeconfig file")
@click.option("--context", help="Kubernetes context to use")
@click.option("--in-cluster", is_flag=True, help="Use in-cluster service account credentials")
@click.option("--timeout", type=float, help="Seconds allowed for collecting cluster facts")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def generate_cmd(
    short: bool,
    output: str,
    format: str,
    out_path: str,
    kubeconfig: Optional[str],
    context: Optional[str],
    in_cluster: bool,
    timeout: Optional[float],
    verbose: bool,
) -> None:
    """Generate KBOM for the provided K8s cluster."""
    _setup_logging(verbose)

    config = GenerateConfig(
        short=short,
        output=output,
        format=format,
        out_path=out_path,
        kubeconfig=kubeconfig,
        context=context,
        in_cluster=in_cluster,
        timeout=timeout,
    )
    source = KubernetesFactSource(
        kubeconfig=config.kubeconfig,
        context=config.context,
        in_cluster=config.in_cluster,
    )

    try:
        result = generate(source, config)
    except KBOMError as e:
        console.print(f"Error: {e}", style="red", markup=False)
        sys.exit(1)

    if result.path is not None:
        console.print(f"KBOM written to {result.path}", style="green", markup=False)
        console.print(f"  Nodes: {result.document.cluster.nodes_count}")
        console.print(f"  Images: {len(result.document.cluster.resources.images)}")


@main.command()
def version() -> None:
    """Show version information."""
    tool = default_tool()
    click.echo(f"{APP_NAME} version {tool.version}")
    if tool.commit:
        click.echo(f"  commit: {tool.commit}")
    if tool.build_time:
        click.echo(f"  built: {tool.build_time}")


if __name__ == "__main__":
    main()
