"""
clipboard.py — Where `--copy` sends a generated code.

The CLI takes a Clipboard collaborator; the default one goes through
pyperclip, which picks whatever copy mechanism the platform offers
(pbcopy, xclip / xsel / wl-copy, the Windows clipboard API).
"""

import logging
from abc import ABC, abstractmethod

import pyperclip

from .errors import CapabilityUnavailable

logger = logging.getLogger(__name__)


class Clipboard(ABC):
    @abstractmethod
    def copy(self, text: str) -> None:
        """Put `text` on the clipboard."""


class PyperclipClipboard(Clipboard):
    def copy(self, text: str) -> None:
        try:
            pyperclip.copy(text)
        except pyperclip.PyperclipException as e:
            raise CapabilityUnavailable(f"Unable to copy to the clipboard: {e}") from e
        logger.debug("Copied %d characters to the clipboard", len(text))


SYSTEM_CLIPBOARD = PyperclipClipboard()


def copy_code(clipboard, code: str) -> None:
    """
    Raises:
        CapabilityUnavailable: no clipboard is wired in, or it cannot be used
    """
    if clipboard is None:
        raise CapabilityUnavailable("Clipboard support is not configured")
    clipboard.copy(code)
