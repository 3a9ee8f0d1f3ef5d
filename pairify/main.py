"""
The command line entry point for choosing two collections and comparing them.
"""
import argparse
import asyncio
import logging
import sys
from collections.abc import Sequence

from pairify import PROGRAM_NAME
from pairify.catalog.gateway import CatalogGateway
from pairify.catalog.types import SearchCategory
from pairify.config import Config
from pairify.log.logger import PairifyLogger
from pairify.selection.controller import ComparisonRequest, SlotSelectionController
from pairify.selection.slot import SLOT_LABELS

# noinspection PyTypeChecker
logger: PairifyLogger = logging.getLogger(__name__)


def get_parser() -> argparse.ArgumentParser:
    """Get the terminal input parser"""
    parser = argparse.ArgumentParser(
        description="Choose two playlists or albums to compare by link or by name.",
        prog=PROGRAM_NAME.lower(),
        usage="%(prog)s [options] A B",
    )
    parser._positionals.title = "Collections"
    parser._optionals.title = "Optional arguments"

    parser.add_argument(
        "queries", nargs=len(SLOT_LABELS), metavar="/".join(SLOT_LABELS),
        help="A link to a playlist or album, or the text to search for one with.",
    )
    parser.add_argument(
        "-c", "--config", type=str, required=False, dest="config_path", default="config.yml",
        help="Path to the config file to use. Relative paths are relative to the package root.",
    )
    return parser


def summarise(request: ComparisonRequest) -> list[str]:
    """Print a summary of both collections in the given comparison ``request``"""
    lines = []
    for label, collection in zip(SLOT_LABELS, (request.collection_a, request.collection_b)):
        lines.append(
            f"{label}: {collection.source_type.key.title():<8} | {collection.name} | "
            f"{collection.external_url} | {len(collection)} tracks"
        )

    logger.print_message(*lines, sep="\n")
    return lines


async def choose(controller: SlotSelectionController, index: int, query: str) -> None:
    """
    Set the ``query`` for the slot at ``index``.
    When the query does not resolve directly, pick the first playlist or album suggested for it.
    """
    slot = controller.set_query(index, query)
    await controller.wait()
    if slot.resolved or controller.suggestions is None:
        return

    for category in (SearchCategory.PLAYLISTS, SearchCategory.ALBUMS):
        if entries := controller.suggestions[category]:
            controller.pick_suggestion(entries[0])
            await controller.wait()
            return

    logger.warning(f"Side {slot.label} | No playlists or albums found for: {query!r}")


async def run(catalog: CatalogGateway, queries: Sequence[str], delay: float) -> list[str] | None:
    """Choose a collection for each of the given ``queries`` and compare them"""
    async with catalog, SlotSelectionController(catalog=catalog, comparator=summarise, delay=delay) as controller:
        for index, query in enumerate(queries):
            await choose(controller, index=index, query=query)
        return await controller.request_compare()


def _handle_exception(exc_type, exc_value, exc_traceback) -> None:
    """Custom exception handler. Handles exceptions through logger."""
    if issubclass(exc_type, KeyboardInterrupt):
        sys.__excepthook__(exc_type, exc_value, exc_traceback)
        return

    logger.critical("CRITICAL ERROR: Uncaught Exception", exc_info=(exc_type, exc_value, exc_traceback))


def main(args: Sequence[str] | None = None) -> int:
    """Parse the given ``args``, choose the two collections and compare them"""
    named_args = get_parser().parse_args(args)
    sys.excepthook = _handle_exception

    config = Config(named_args.config_path)
    config.load()
    config.configure_logging(__name__)
    logger.debug(f"Config loaded: {config.as_dict()}")

    result = asyncio.run(
        run(catalog=config.spotify.create_catalog(), queries=named_args.queries, delay=config.selection.debounce)
    )
    return 0 if result else 1


if __name__ == "__main__":
    sys.exit(main())
