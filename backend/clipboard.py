"""Clipboard export for the narrative and the map links.

Each export builds a ``ClipboardContent`` (plain text plus a styled HTML
rendering) and hands it to ``ClipboardExporter``, which tries an ordered list
of strategies and stops at the first one that reports success:

  1.  Rich copy: the HTML rendering through a clipboard command that
      accepts an HTML target, so word processors keep fonts and links.
  2.  Plain copy: the plain text through the platform text clipboard.
  3.  Hidden widget: the plain text through a withdrawn Tk root window.

A strategy that raises counts as a failure. Only when all of them fail does
the exporter raise ``ClipboardError``.
"""

import html
import logging
import shutil
import subprocess
import sys
from dataclasses import dataclass
from typing import Callable, Sequence

from errors import ClipboardError
from models import MapLink

logger = logging.getLogger(__name__)

CLIPBOARD_ERROR_MESSAGE = "Could not copy to clipboard."

# Styling applied to the rich narrative so pasted text matches the page.
NARRATIVE_FONT_FAMILY = "Georgia, 'Times New Roman', serif"
NARRATIVE_FONT_SIZE = "12pt"

_COMMAND_TIMEOUT_S = 5


@dataclass(frozen=True)
class ClipboardContent:
    text: str
    html: str


ClipboardStrategy = Callable[[ClipboardContent], bool]


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------


def narrative_content(
    prose: str,
    *,
    font_family: str = NARRATIVE_FONT_FAMILY,
    font_size: str = NARRATIVE_FONT_SIZE,
) -> ClipboardContent:
    """Plain text is the prose exactly; HTML is one styled paragraph."""
    rich = (
        f'<p style="font-family: {html.escape(font_family)}; '
        f'font-size: {html.escape(font_size)};">{html.escape(prose)}</p>'
    )
    return ClipboardContent(text=prose, html=rich)


def links_content(
    links: Sequence[MapLink],
    *,
    font_family: str = NARRATIVE_FONT_FAMILY,
    font_size: str = NARRATIVE_FONT_SIZE,
) -> ClipboardContent:
    """One ``Name: URL`` line per link, in the given order."""
    text = "\n".join(f"{link.name}: {link.url}" for link in links)
    items = "<br>".join(
        f'{html.escape(link.name)}: '
        f'<a href="{html.escape(link.url)}">{html.escape(link.url)}</a>'
        for link in links
    )
    rich = (
        f'<p style="font-family: {html.escape(font_family)}; '
        f'font-size: {html.escape(font_size)};">{items}</p>'
    )
    return ClipboardContent(text=text, html=rich)


# ---------------------------------------------------------------------------
# Host strategies
# ---------------------------------------------------------------------------


def _html_command() -> list[str] | None:
    if shutil.which("wl-copy"):
        return ["wl-copy", "--type", "text/html"]
    if shutil.which("xclip"):
        return ["xclip", "-selection", "clipboard", "-t", "text/html"]
    return None


def _text_command() -> list[str] | None:
    if sys.platform == "darwin" and shutil.which("pbcopy"):
        return ["pbcopy"]
    if sys.platform == "win32" and shutil.which("clip"):
        return ["clip"]
    if shutil.which("wl-copy"):
        return ["wl-copy"]
    if shutil.which("xclip"):
        return ["xclip", "-selection", "clipboard"]
    if shutil.which("xsel"):
        return ["xsel", "--clipboard", "--input"]
    return None


def _pipe_to(command: list[str], payload: str) -> bool:
    # xclip keeps running to serve the selection, so its output is not captured.
    completed = subprocess.run(
        command,
        input=payload.encode("utf-8"),
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
        timeout=_COMMAND_TIMEOUT_S,
        check=False,
    )
    return completed.returncode == 0


def copy_rich(content: ClipboardContent) -> bool:
    command = _html_command()
    if command is None:
        return False
    return _pipe_to(command, content.html)


def copy_plain(content: ClipboardContent) -> bool:
    command = _text_command()
    if command is None:
        return False
    return _pipe_to(command, content.text)


def copy_via_hidden_widget(content: ClipboardContent) -> bool:
    """Copies through a withdrawn Tk window; False when Tk is unavailable."""
    try:
        import tkinter
    except ImportError:
        return False

    root = tkinter.Tk()
    try:
        root.withdraw()
        root.clipboard_clear()
        root.clipboard_append(content.text)
        root.update()
    finally:
        root.destroy()
    return True


def default_strategies() -> list[ClipboardStrategy]:
    return [copy_rich, copy_plain, copy_via_hidden_widget]


# ---------------------------------------------------------------------------
# Exporter
# ---------------------------------------------------------------------------


class ClipboardExporter:
    """Places content on the clipboard using the first strategy that works."""

    def __init__(self, strategies: Sequence[ClipboardStrategy] | None = None) -> None:
        self._strategies = (
            list(strategies) if strategies is not None else default_strategies()
        )

    def copy(self, content: ClipboardContent) -> bool:
        """Returns True once a strategy succeeds.

        Raises:
            ClipboardError: If every strategy fails.
        """
        for strategy in self._strategies:
            name = getattr(strategy, "__name__", repr(strategy))
            try:
                if strategy(content):
                    logger.info("Copied to clipboard via %s", name)
                    return True
            except Exception as exc:  # noqa: BLE001
                logger.warning("Clipboard strategy %s failed: %s", name, exc)
                continue
            logger.warning("Clipboard strategy %s unavailable", name)
        raise ClipboardError(CLIPBOARD_ERROR_MESSAGE)

    def copy_narrative(self, prose: str) -> bool:
        """Copies the narrative; False without touching the clipboard if empty."""
        if not prose:
            return False
        return self.copy(narrative_content(prose))

    def copy_links(self, links: Sequence[MapLink]) -> bool:
        """Copies the map links; False without touching the clipboard if none."""
        if not links:
            return False
        return self.copy(links_content(links))
