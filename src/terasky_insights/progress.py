"""Terminal spinner shown while blocking engine operations run."""

import logging
from typing import Optional

from rich.console import Console
from rich.status import Status

logger = logging.getLogger(__name__)


class ProgressIndicator:
    """
    Cancellable "please wait" spinner over a rich status display.

    stop() joins the status refresh thread, so once it returns nothing else
    is drawn and the caller can print errors or results. On a console that
    is not a terminal the status stays invisible.
    """

    def __init__(
        self,
        console: Optional[Console] = None,
        message: str = "Please wait...",
        spinner: str = "line",
        interval: float = 0.1,
    ):
        self.console = console or Console()
        self.message = message
        self.spinner = spinner
        self.interval = interval
        self._status: Optional[Status] = None

    @property
    def active(self) -> bool:
        return self._status is not None

    def start(self) -> None:
        """Start the spinner and return immediately."""
        if self._status is not None:
            return

        self._status = self.console.status(
            self.message,
            spinner=self.spinner,
            refresh_per_second=1 / self.interval,
        )
        self._status.start()

    def stop(self) -> None:
        """Stop the spinner and wait for its refresh thread."""
        if self._status is None:
            return

        self._status.stop()
        self._status = None

    def __enter__(self) -> "ProgressIndicator":
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()
