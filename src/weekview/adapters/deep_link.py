"""Open platform calendar and reminder screens by URI."""

import logging
import webbrowser

logger = logging.getLogger(__name__)


def open_deep_link(uri: str) -> None:
    """Fire-and-forget: a handler that is missing or fails is ignored."""
    try:
        opened = webbrowser.open(uri)
    except webbrowser.Error as e:
        logger.debug(f"Could not open {uri}: {e}")
        return
    if not opened:
        logger.debug(f"No handler opened {uri}")
