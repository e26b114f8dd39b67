# Copyright Red Hat
#
# repverify/_repverify.py - Replication verifier global definitions
#
# This file is part of the repverify project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Global definitions for the top-level repverify package.
"""
from typing import Optional, TextIO, Union, TYPE_CHECKING
import logging
import weakref
import os
import sys

if TYPE_CHECKING:
    from .progress import ProgressBase

# Repverify debugging subsystem mask
REPVERIFY_DEBUG_VERIFY = 1
REPVERIFY_DEBUG_COMMAND = 2
REPVERIFY_DEBUG_ALL = REPVERIFY_DEBUG_VERIFY | REPVERIFY_DEBUG_COMMAND

# Repverify debugging subsystem names
REPVERIFY_SUBSYSTEM_VERIFY = "repverify.verify"
REPVERIFY_SUBSYSTEM_COMMAND = "repverify.command"

_DEBUG_MASK_TO_SUBSYSTEM = {
    REPVERIFY_DEBUG_VERIFY: REPVERIFY_SUBSYSTEM_VERIFY,
    REPVERIFY_DEBUG_COMMAND: REPVERIFY_SUBSYSTEM_COMMAND,
}

_debug_subsystems = set()

# Registry of active progress instances: uses a WeakSet so we don't prevent
# garbage collection.
_active_progress: weakref.WeakSet = weakref.WeakSet()


class SubsystemFilter(logging.Filter):
    """
    Filters DEBUG records based on a set of enabled subsystem names.
    Non-DEBUG records or DEBUG records without a 'subsystem' attribute
    are always passed through.
    """

    def __init__(self, name=""):
        super().__init__(name)
        self.enabled_subsystems = set(_debug_subsystems)

    def filter(self, record):
        if record.levelno != logging.DEBUG:
            return True

        if not hasattr(record, "subsystem"):
            return True

        return record.subsystem in self.enabled_subsystems

    def set_debug_subsystems(self, subsystems):
        """Sets the collection of subsystems to allow."""
        self.enabled_subsystems = set(subsystems)


def get_debug_mask():
    """
    Return the current debug mask for the ``repverify`` package.

    :returns: The current debug mask value
    :rtype: int
    """
    enabled_subsystems = set(_debug_subsystems)
    repverify_log = logging.getLogger("repverify")

    for handler in repverify_log.handlers:
        for f in handler.filters:
            if isinstance(f, SubsystemFilter):
                enabled_subsystems.update(f.enabled_subsystems)

    mask_map = {v: k for k, v in _DEBUG_MASK_TO_SUBSYSTEM.items()}
    mask = 0
    for subsystem_name in enabled_subsystems:
        mask |= mask_map.get(subsystem_name, 0)
    return mask


def set_debug_mask(mask):
    """
    Set the debug mask for the ``repverify`` package.

    :param mask: the logical OR of the ``REPVERIFY_DEBUG_*``
                 values to log.
    :rtype: None
    """
    # pylint: disable=global-statement
    global _debug_subsystems

    if mask < 0 or mask > REPVERIFY_DEBUG_ALL:
        raise ValueError(f"Invalid repverify debug mask: {mask}")

    enabled_subsystems = [
        subsystem_name
        for flag, subsystem_name in _DEBUG_MASK_TO_SUBSYSTEM.items()
        if mask & flag
    ]

    repverify_log = logging.getLogger("repverify")
    for handler in repverify_log.handlers:
        for f in handler.filters:
            if isinstance(f, SubsystemFilter):
                f.set_debug_subsystems(enabled_subsystems)

    _debug_subsystems = set(enabled_subsystems)


def register_progress(progress: "ProgressBase"):
    """Register a progress instance for log coordination."""
    _active_progress.add(progress)
    progress.registered = True


def unregister_progress(progress: "ProgressBase"):
    """Unregister a progress instance."""
    _active_progress.discard(progress)
    progress.registered = False


def notify_log_output(stream: TextIO):
    """
    Notify progress instances that log output occurred on stream.

    Called by ProgressAwareHandler after emitting a record.

    :param stream: The stream that received output.
    :type stream: ``TextIO``
    """
    if stream not in (sys.stdout, sys.stderr):
        return
    for progress in list(_active_progress):
        if hasattr(progress, "reset_position"):
            progress.reset_position()


class ProgressAwareHandler(logging.StreamHandler):
    """
    A logging handler that coordinates with active Progress instances.

    After emitting a log record, notifies any Progress instances writing
    to the same stream so they can avoid erasing the log message.
    """

    def __init__(self, stream: Optional[TextIO] = None, **kwargs):
        super().__init__(stream=stream or sys.stderr, **kwargs)

    def emit(self, record):
        try:
            msg = self.format(record)
            self.stream.write(msg + "\n")
            self.stream.flush()
            notify_log_output(self.stream)
        except Exception:  # pylint: disable=broad-exception-caught
            self.handleError(record)


#
# Repverify exception types
#


class RepverifyError(Exception):
    """
    Base class for replication verifier errors.
    """


class RepverifyArgumentError(RepverifyError):
    """
    An invalid argument was passed to a replication verifier API call.
    """


class RepverifyPathError(RepverifyError):
    """
    Base class for errors tied to a particular file system path.
    """

    def __init__(self, path: Union[str, os.PathLike], reason: str):
        """
        Initialise a new path error.

        :param path: The path that caused the failure.
        :param reason: A description of the failure.
        """
        self.path, self.reason = str(path), reason
        super().__init__(f"{self.path}: {reason}")


class RepverifyUnreadableError(RepverifyPathError):
    """
    The metadata or content of a file system entry could not be read:
    for e.g. a permission error, an I/O fault, or the entry disappeared
    while the tree was being walked.
    """


class RepverifyWalkError(RepverifyPathError):
    """
    A tree root does not exist, is not a directory, or could not be
    traversed.
    """


__all__ = [
    "REPVERIFY_DEBUG_VERIFY",
    "REPVERIFY_DEBUG_COMMAND",
    "REPVERIFY_DEBUG_ALL",
    "REPVERIFY_SUBSYSTEM_VERIFY",
    "REPVERIFY_SUBSYSTEM_COMMAND",
    "SubsystemFilter",
    "get_debug_mask",
    "set_debug_mask",
    "register_progress",
    "unregister_progress",
    "notify_log_output",
    "ProgressAwareHandler",
    "RepverifyError",
    "RepverifyArgumentError",
    "RepverifyPathError",
    "RepverifyUnreadableError",
    "RepverifyWalkError",
]
