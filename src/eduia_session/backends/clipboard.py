"""System clipboard through the platform's copy command."""

import logging
import shutil
import subprocess
import sys

from ..provider import Clipboard

logger = logging.getLogger(__name__)


def _copy_command() -> list[str] | None:
    """Return the copy command available on this machine, if any."""
    if sys.platform == "darwin":
        candidates = [["pbcopy"]]
    elif sys.platform == "win32":
        candidates = [["clip"]]
    else:  # Linux
        candidates = [["wl-copy"], ["xclip", "-selection", "clipboard"], ["xsel", "--clipboard", "--input"]]

    for cmd in candidates:
        if shutil.which(cmd[0]):
            return cmd
    return None


class SystemClipboard(Clipboard):
    def copy(self, text: str) -> bool:
        cmd = _copy_command()
        if cmd is None:
            logger.debug("No clipboard command available")
            return False
        try:
            subprocess.run(cmd, input=text.encode("utf-8"), check=True, timeout=5)
        except (OSError, subprocess.SubprocessError) as e:
            logger.warning("Clipboard copy failed: %s", e)
            return False
        return True
