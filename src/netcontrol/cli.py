"""Command-line entry point: ``netcontrol run``."""

from __future__ import annotations

import logging
import signal
import threading
from pathlib import Path

import click

from netcontrol import __version__
from netcontrol.algorithm import ControlProblem
from netcontrol.loaders import (
    default_output_path,
    nodes_from_edges,
    output_document,
    read_edges,
    read_node_list,
    read_parameters,
    restrict_to_network,
    write_output,
)
from netcontrol.search import DEFAULT_PROGRESS_INTERVAL

logger = logging.getLogger("netcontrol")


def _configure_logging(verbose: bool, quiet: bool) -> None:
    level = logging.DEBUG if verbose else logging.WARNING if quiet else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _load(reader, path: Path, what: str):
    try:
        return reader(path)
    except (OSError, ValueError, KeyError) as exc:
        raise click.ClickException(
            f"The error \"{exc}\" occurred while reading the file "
            f"\"{path}\" (containing the {what}).")


@click.group()
@click.version_option(version=__version__)
def main():
    """Minimum source sets for target control of directed networks."""


@main.command()
@click.option("--edges", "edges_path", required=True,
              type=click.Path(exists=True, dir_okay=False, path_type=Path),
              help="Edge file, one 'source;target' pair per line.")
@click.option("--targets", "targets_path", required=True,
              type=click.Path(exists=True, dir_okay=False, path_type=Path),
              help="Target node file, one label per line.")
@click.option("--sources", "sources_path", required=True,
              type=click.Path(exists=True, dir_okay=False, path_type=Path),
              help="Source node file, one label per line.")
@click.option("--parameters", "parameters_path", required=True,
              type=click.Path(exists=True, dir_okay=False, path_type=Path),
              help="JSON parameter file.")
@click.option("-o", "--output", "output_path", default=None,
              type=click.Path(dir_okay=False, path_type=Path),
              help="Output JSON file (default: next to the edge file).")
@click.option("--progress-interval", default=DEFAULT_PROGRESS_INTERVAL,
              type=click.FloatRange(min=0.1), show_default=True,
              help="Seconds between progress lines.")
@click.option("-v", "--verbose", is_flag=True, help="Debug logging.")
@click.option("-q", "--quiet", is_flag=True, help="Warnings and errors only.")
def run(edges_path, targets_path, sources_path, parameters_path, output_path,
        progress_interval, verbose, quiet):
    """Find a smallest set of source nodes controlling the target nodes."""
    _configure_logging(verbose, quiet)

    edges = _load(read_edges, edges_path, "edges")
    targets = _load(read_node_list, targets_path, "target nodes")
    sources = _load(read_node_list, sources_path, "source nodes")
    parameters = _load(read_parameters, parameters_path, "parameters")

    if not edges:
        raise click.ClickException(
            f"No edges could be read from the file \"{edges_path}\". Please "
            "check the file and make sure that it is in the required format.")
    nodes = nodes_from_edges(edges)
    targets = restrict_to_network(targets, nodes)
    if not targets:
        raise click.ClickException(
            f"No target nodes could be read from the file \"{targets_path}\", "
            "or none of them could be found in the network.")
    sources = restrict_to_network(sources, nodes)
    if not sources:
        raise click.ClickException(
            f"No source nodes could be read from the file \"{sources_path}\", "
            "or none of them could be found in the network.")
    parameters = parameters.with_resolved_seed()

    output_path = output_path or default_output_path(edges_path)
    try:
        output_path.write_text("", encoding="utf-8")
    except OSError as exc:
        raise click.ClickException(
            f"The error \"{exc}\" occurred while trying to write to the "
            f"output file \"{output_path}\".")

    logger.info(
        "The following data has been loaded."
        "\n\t%d edge(s) and %d node(s) loaded from \"%s\"."
        "\n\t%d target node(s) loaded from \"%s\"."
        "\n\t%d source node(s) loaded from \"%s\".",
        len(edges), len(nodes), edges_path, len(targets), targets_path,
        len(sources), sources_path)
    logger.info("The following parameters have been loaded from \"%s\".%s",
                parameters_path, parameters.describe())

    problem = ControlProblem(nodes=nodes, edges=edges, targets=targets,
                             sources=sources, parameters=parameters)
    cancel = threading.Event()
    previous = signal.signal(signal.SIGINT, lambda *_: cancel.set())
    try:
        result = problem.run(cancel, log=logger,
                             progress_interval=progress_interval)
    finally:
        signal.signal(signal.SIGINT, previous)
    if result is None:
        raise click.ClickException("The algorithm did not run.")

    document = output_document(edges_path, targets_path, sources_path,
                               parameters, result)
    try:
        write_output(output_path, document)
    except OSError as exc:
        logger.error(
            "The error \"%s\" occurred while writing the results to the file "
            "\"%s\". The results will be displayed below instead.",
            exc, output_path)
        click.echo(result.summary())
        raise SystemExit(1)
    logger.info("The results have been written in JSON format to the file "
                "\"%s\".", output_path)
    click.echo(result.summary())


if __name__ == "__main__":
    main()
