"""Errors that end a launch run. None of them is retried."""

import logging
from pathlib import Path
from typing import Sequence

logger = logging.getLogger(__name__)


class ParalaunchError(Exception):
    """Base error with a message; optionally logged when raised."""

    def __init__(self, message: str = "A launch error occurred", log: bool = False):
        self.message = message
        super().__init__(self.message)
        if log:
            logger.error(message)


class InvalidSelection(ParalaunchError):
    """Bad command-line selection: wrong argument count or unknown profile name."""

    def __init__(self, reason: str, detail: str, valid_names: Sequence[str] = (), log: bool = False):
        self.reason = reason
        self.valid_names = list(valid_names)
        super().__init__(detail, log=log)


class BinaryUnavailable(ParalaunchError):
    """A node binary is missing locally or could not be extracted from its image."""

    def __init__(self, reason: str, path: Path | None = None, image: str | None = None, log: bool = False):
        self.reason = reason
        self.path = path
        self.image = image
        target = path if path is not None else image
        super().__init__(f"{reason}: {target}", log=log)


class LaunchFailure(ParalaunchError):
    """The process launcher could not start one or more nodes."""


__all__ = ["BinaryUnavailable", "InvalidSelection", "LaunchFailure", "ParalaunchError"]
