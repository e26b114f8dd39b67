# Copyright Red Hat
#
# repverify/progress.py - Replication verifier progress indicator
#
# This file is part of the repverify project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Progress indicators for tree snapshots.

A snapshot knows how many entries it will visit before it starts, so every
indicator reports ``done`` out of a fixed ``total``.
"""
from typing import Optional, TextIO
from abc import ABC, abstractmethod
import shutil
import time
import sys
import os

from repverify import register_progress, unregister_progress

#: Maximum redraw rate for ``Progress``.
DEFAULT_FPS = 10

#: Bar body width bounds in characters.
BAR_MIN_WIDTH = 10
BAR_MAX_WIDTH = 40


def _flush(stream: TextIO):
    """
    Flush ``stream``, exiting quietly if the reading end has gone away.
    """
    try:
        stream.flush()
    except BrokenPipeError as err:
        # Stop the interpreter failing again when it flushes at exit.
        devnull = os.open(os.devnull, os.O_WRONLY)
        try:
            os.dup2(devnull, stream.fileno())
        finally:
            os.close(devnull)
        raise SystemExit(1) from err


class ProgressBase(ABC):
    """
    Progress over a known number of entries. Subclasses decide how the
    state is displayed.
    """

    def __init__(self, header: str, stream: Optional[TextIO] = None):
        """
        Initialise a new progress indicator.

        :param header: The label shown before the bar.
        :type header: ``str``
        :param stream: The stream to write to (default ``sys.stdout``).
        :type stream: ``Optional[TextIO]``
        """
        self.header: str = header
        self.stream: TextIO = stream or sys.stdout
        self.total: int = 0
        self.first_update: bool = True
        self.registered: bool = False

    @property
    def active(self) -> bool:
        """
        True between ``start()`` and ``end()`` or ``cancel()``.
        """
        return self.total > 0

    def reset_position(self):
        """Mark the display as displaced by other output on the stream."""
        self.first_update = True

    def _bar(self, done: int, width: int) -> str:
        filled = done * width // self.total
        return "%s: %3d%% [%s%s]" % (
            self.header,
            100 * done // self.total,
            "=" * filled,
            "-" * (width - filled),
        )

    def _check(self, done: int, step: str):
        name = f"{self.__class__.__name__}.{step}()"
        if not self.active:
            raise ValueError(f"{name} called before start()")
        if not 0 <= done <= self.total:
            raise ValueError(f"{name} done out of range: {done} of {self.total}")

    def start(self, total: int):
        """
        Begin reporting progress over ``total`` entries.

        :param total: The number of entries to be processed.
        :type total: ``int``
        :raises ``ValueError``: If ``total`` is not positive.
        """
        if total <= 0:
            raise ValueError(f"total must be positive: {total}")
        self.total = total
        self.first_update = True
        register_progress(self)

    def progress(self, done: int, message: Optional[str] = None):
        """
        Report that ``done`` entries have been processed.

        :param done: The number of entries processed so far.
        :type done: ``int``
        :param message: An optional description of the current entry.
        :type message: ``Optional[str]``
        :raises ``ValueError``: If not started or ``done`` is out of range.
        """
        self._check(done, "progress")
        self._update(done, message or "")

    def end(self, message: Optional[str] = None):
        """
        Complete the run, showing the final state and ``message``.
        """
        self._check(self.total, "end")
        self._update(self.total, "")
        self._finish(message)

    def cancel(self, message: Optional[str] = None):
        """
        Abandon the run, showing ``message`` in place of the bar.
        """
        self._check(0, "cancel")
        self._finish(message)

    def _finish(self, message: Optional[str]):
        self._clear(message)
        self.total = 0
        unregister_progress(self)

    @abstractmethod
    def _update(self, done: int, message: str):
        """Display the current state."""

    @abstractmethod
    def _clear(self, message: Optional[str]):
        """Remove the display and show the optional final ``message``."""


class Progress(ProgressBase):
    """
    A single line bar for interactive terminals, redrawn in place::

        Snapshotting /srv:  20% [========--------------------------------] a/b
    """

    def __init__(
        self,
        header: str,
        stream: Optional[TextIO] = None,
        width: Optional[int] = None,
    ):
        super().__init__(header, stream)
        self.columns: int = shutil.get_terminal_size().columns
        if width is None:
            width = min(BAR_MAX_WIDTH, self.columns // 4)
        self.width: int = max(BAR_MIN_WIDTH, width)
        self._last: float = 0.0
        self._drawn: int = 0

    def _update(self, done: int, message: str):
        now = time.monotonic()
        throttled = now - self._last < 1.0 / DEFAULT_FPS
        if throttled and done < self.total and not self.first_update:
            return
        self._last = now

        line = f"{self._bar(done, self.width)} {message}"[: self.columns - 1]
        if self.first_update:
            self.stream.write(line)
        else:
            self.stream.write("\r" + line.ljust(self._drawn))
        self.first_update = False
        self._drawn = len(line)
        _flush(self.stream)

    def _clear(self, message: Optional[str]):
        if self._drawn:
            self.stream.write("\r" + " " * self._drawn + "\r")
            self._drawn = 0
        if message:
            self.stream.write(message + "\n")
        _flush(self.stream)


class SimpleProgress(ProgressBase):
    """
    Writes one line per update, for streams that are not terminals.
    """

    def __init__(
        self,
        header: str,
        stream: Optional[TextIO] = None,
        width: int = BAR_MAX_WIDTH,
    ):
        super().__init__(header, stream)
        self.width: int = max(BAR_MIN_WIDTH, width)

    def _update(self, done: int, message: str):
        print(f"{self._bar(done, self.width)} ({message})", file=self.stream)
        _flush(self.stream)

    def _clear(self, message: Optional[str]):
        if message:
            print(message, file=self.stream)
            _flush(self.stream)


class NullProgress(ProgressBase):
    """
    Tracks progress state without producing output.
    """

    def _update(self, done: int, message: str):
        return

    def _clear(self, message: Optional[str]):
        return


class ProgressFactory:
    """
    Choose a progress implementation for an output stream.
    """

    @staticmethod
    def get_progress(
        header: str, quiet: bool = False, term_stream: Optional[TextIO] = None
    ) -> ProgressBase:
        """
        Return ``NullProgress`` when ``quiet`` is set, ``Progress`` when
        ``term_stream`` is a terminal and ``SimpleProgress`` otherwise.

        :param header: The progress header.
        :type header: ``str``
        :param quiet: Suppress all output.
        :type quiet: ``bool``
        :param term_stream: The output stream (default ``sys.stdout``).
        :type term_stream: ``Optional[TextIO]``
        :returns: A progress indicator.
        :rtype: ``ProgressBase``
        """
        stream = term_stream or sys.stdout
        if quiet:
            return NullProgress(header, stream)
        isatty = getattr(stream, "isatty", None)
        if isatty is not None and isatty():
            return Progress(header, stream)
        return SimpleProgress(header, stream)


__all__ = [
    "DEFAULT_FPS",
    "NullProgress",
    "Progress",
    "ProgressBase",
    "ProgressFactory",
    "SimpleProgress",
]
