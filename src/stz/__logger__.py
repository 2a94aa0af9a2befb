# pyright: standard

"""stz: src/stz/__logger__.py
A common logger writing through rich to stderr, keeping stdout free for
archive listings.
"""

import logging

from rich.console import Console
from rich.logging import RichHandler

# Initialize basic console and handler
cons = Console(stderr=True)
rich_handler = RichHandler(console=cons, show_path=False)
logger = logging.getLogger("stz")

FILE_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def create_logger(level: str | int = "INFO") -> None:
    """Helper function to setup logging for a command run."""
    # pylint: disable=global-statement
    global cons, rich_handler

    cons = Console(stderr=True)
    rich_handler = RichHandler(console=cons, show_path=False, show_time=False)

    logging.basicConfig(
        format="%(message)s",
        datefmt="%H:%M:%S",
        level=level,
        handlers=[rich_handler],
        force=True,
    )


def add_file_handler(path: str, level: str | int = "DEBUG") -> logging.Handler:
    """Also write log records to a plain text file."""
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(FILE_FORMAT))
    root = logging.getLogger()
    root.addHandler(handler)
    # The root level caps what reaches the file handler
    if root.level > handler.level:
        rich_handler.setLevel(root.level)
        root.setLevel(handler.level)
    return handler
