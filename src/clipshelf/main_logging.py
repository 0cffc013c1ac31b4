"""Logging configuration for the clipshelf CLI."""
import logging

# Libraries that log chatty internals at DEBUG; they stay at WARNING even
# with --verbose so the output shows clipshelf's own decisions.
QUIET_LOGGERS: tuple[str, ...] = ("PIL", "tenacity")


def configure_logging(verbose: bool) -> None:
    """Route clipshelf's log records to stderr.

    With verbose, clipshelf modules log at DEBUG and each line carries the
    module name (``clipshelf.item_repository`` etc.), since several of them
    report on the same operation. Without it only warnings reach the user,
    such as skipped malformed documents or undecodable images.

    Args:
        verbose: If True, enable DEBUG output for clipshelf modules.
    """
    if verbose:
        fmt = "%(levelname)s %(name)s: %(message)s"
    else:
        fmt = "%(levelname)s: %(message)s"
    logging.basicConfig(
        level=logging.WARNING,
        format=fmt,
        handlers=[logging.StreamHandler()],
        force=True,
    )
    logging.getLogger("clipshelf").setLevel(logging.DEBUG if verbose else logging.WARNING)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
