"""
Status reporting for status bars.

The current state label is written to a small file that an i3blocks block
can ``cat``; i3blocks is signalled so it refreshes immediately.
"""

import atexit
import logging
import os
import subprocess
from typing import Optional

logger = logging.getLogger(__name__)

STATUS_PATH = "/tmp/dictr-status"
I3BLOCKS_SIGNAL = 11


class StatusFile:
    """
    Writes state labels ("idle", "recording", "transcribing") to a file.

    The file is removed at interpreter exit once anything was written.
    Failures are logged and never raised.
    """

    def __init__(self, path: str = STATUS_PATH, signal_number: Optional[int] = I3BLOCKS_SIGNAL) -> None:
        self.path = path
        self.signal_number = signal_number
        self._registered = False

    def set(self, label: str) -> None:
        if not self._registered:
            atexit.register(self.remove)
            self._registered = True

        try:
            with open(self.path, "w", encoding="utf-8") as f:
                f.write(label)
        except OSError as e:
            logger.warning(f"Could not write status file {self.path}: {e}")
            return

        self._signal_i3blocks()

    def _signal_i3blocks(self) -> None:
        if self.signal_number is None:
            return
        try:
            subprocess.run(
                ["pkill", f"-RTMIN+{self.signal_number}", "i3blocks"],
                capture_output=True,
                timeout=2,
                check=False
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.debug(f"i3blocks signal failed: {e}")

    def remove(self) -> None:
        try:
            os.remove(self.path)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.debug(f"Could not remove status file {self.path}: {e}")
