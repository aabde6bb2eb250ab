"""Open a finished output file with the desktop's default application."""

import os
import subprocess
import sys
from pathlib import Path


def open_artifact(path: Path) -> None:
    """Open ``path`` without waiting for the viewer to exit.

    Raises:
        OSError: If no opener is available on this platform.
    """
    if sys.platform.startswith("win"):
        os.startfile(str(path))  # type: ignore[attr-defined]
        return

    opener = "open" if sys.platform == "darwin" else "xdg-open"
    subprocess.Popen(
        [opener, str(path)],
        stdin=subprocess.DEVNULL,
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
        start_new_session=True,
    )
