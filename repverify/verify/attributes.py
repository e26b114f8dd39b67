# Copyright Red Hat
#
# repverify/verify/attributes.py - Replication verifier attribute extraction
#
# This file is part of the repverify project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Per-entry attribute records and their extraction from the file system.
"""
from typing import Any, Dict, Optional, Union
from dataclasses import dataclass
from hashlib import md5, sha1, sha256, sha512
from enum import Enum
import logging
import stat
import os

from repverify import (
    REPVERIFY_SUBSYSTEM_VERIFY,
    RepverifyArgumentError,
    RepverifyUnreadableError,
)

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


def _log_debug_verify(msg, *args, **kwargs):
    """A wrapper for verify subsystem debug logs."""
    _log.debug(msg, *args, extra={"subsystem": REPVERIFY_SUBSYSTEM_VERIFY}, **kwargs)


_HASH_TYPES = {
    "md5": md5,
    "sha1": sha1,
    "sha256": sha256,
    "sha512": sha512,
}

#: Read size used when hashing file content.
_HASH_CHUNK_SIZE = 65536


class EntryKind(Enum):
    """
    Enum for the kinds of file system entry that are distinguished.
    """

    FILE = "file"
    DIRECTORY = "directory"
    OTHER = "other"


@dataclass(frozen=True)
class AttributeRecord:
    """
    The attributes of a single file system entry used for comparison.
    """

    #: The kind of entry
    kind: EntryKind
    #: Size in bytes: always 0 for anything but ``EntryKind.FILE``
    size: int = 0
    #: Uppercase hex content digest for files, ``None`` otherwise
    checksum: Optional[str] = None
    #: True if the entry cannot be written by the current user
    read_only: bool = False

    def __post_init__(self):
        if self.size < 0:
            raise ValueError(f"Invalid negative size: {self.size}")
        if (self.checksum is not None) != (self.kind == EntryKind.FILE):
            raise ValueError(
                f"Checksum must be set if and only if kind is file "
                f"(kind={self.kind.value}, checksum={self.checksum!r})"
            )

    def __str__(self):
        return (
            f"kind={self.kind.value} size={self.size} "
            f"checksum={self.checksum or ''} read_only={self.read_only}"
        )

    @property
    def is_file(self) -> bool:
        """
        True if this record describes a regular file.
        """
        return self.kind == EntryKind.FILE

    @property
    def is_dir(self) -> bool:
        """
        True if this record describes a directory.
        """
        return self.kind == EntryKind.DIRECTORY

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert this ``AttributeRecord`` object into a dictionary
        representation suitable for encoding as JSON.

        :returns: A dictionary mapping this instance's keys to values.
        :rtype: ``Dict[str, Any]``
        """
        return {
            "kind": self.kind.value,
            "size": self.size,
            "checksum": self.checksum,
            "read_only": self.read_only,
        }


def _kind_from_mode(mode: int) -> EntryKind:
    """
    Classify an ``st_mode`` value.

    :param mode: The mode returned by ``lstat()``.
    :type mode: ``int``
    :returns: The corresponding ``EntryKind``.
    :rtype: ``EntryKind``
    """
    if stat.S_ISDIR(mode):
        return EntryKind.DIRECTORY
    if stat.S_ISREG(mode):
        return EntryKind.FILE
    return EntryKind.OTHER


def _is_read_only(path: Union[str, os.PathLike], path_stat: os.stat_result) -> bool:
    """
    Return ``True`` if ``path`` cannot be written by the current user. For a
    symbolic link the link itself is checked, never its target.

    :param path: The path to check.
    :type path: ``Union[str, os.PathLike]``
    :param path_stat: The ``lstat()`` result for ``path``.
    :type path_stat: ``os.stat_result``
    :returns: ``True`` if ``path`` is not writable.
    :rtype: ``bool``
    """
    if not stat.S_ISLNK(path_stat.st_mode):
        return not os.access(path, os.W_OK)
    if os.access in os.supports_follow_symlinks:
        return not os.access(path, os.W_OK, follow_symlinks=False)
    return not path_stat.st_mode & stat.S_IWUSR


class AttributeExtractor:
    """
    Build ``AttributeRecord`` objects from paths on disk.
    """

    def __init__(self, hash_algorithm: str = "sha256"):
        """
        Initialise a new ``AttributeExtractor`` object.

        :param hash_algorithm: A string describing the hash algorithm to be
                               used for file checksums.
        :type hash_algorithm: ``str``
        """
        if hash_algorithm not in _HASH_TYPES:
            raise RepverifyArgumentError(f"Unknown hash algorithm: {hash_algorithm}")
        self.hash_algorithm: str = hash_algorithm
        self.hasher = _HASH_TYPES[hash_algorithm]

    def extract(self, path: Union[str, os.PathLike]) -> AttributeRecord:
        """
        Extract the attribute record for ``path``. Symbolic links are not
        followed: a link is classified as ``EntryKind.OTHER``.

        :param path: The path to examine.
        :type path: ``Union[str, os.PathLike]``
        :returns: A new ``AttributeRecord`` for ``path``.
        :rtype: ``AttributeRecord``
        :raises ``RepverifyUnreadableError``: If the metadata or content of
                                              ``path`` cannot be read.
        """
        try:
            path_stat = os.lstat(path)
        except OSError as err:
            raise RepverifyUnreadableError(
                path, f"Cannot read metadata: {err.strerror or err}"
            ) from err

        kind = _kind_from_mode(path_stat.st_mode)
        size = path_stat.st_size if kind == EntryKind.FILE else 0
        checksum = self.calculate_checksum(path) if kind == EntryKind.FILE else None
        read_only = _is_read_only(path, path_stat)

        record = AttributeRecord(kind, size=size, checksum=checksum, read_only=read_only)
        _log_debug_verify("Extracted attributes for '%s': %s", path, record)
        return record

    def calculate_checksum(self, path: Union[str, os.PathLike]) -> str:
        """
        Calculate the content hash of the regular file at ``path``.

        :param path: The path to the file to hash.
        :type path: ``Union[str, os.PathLike]``
        :returns: The digest of the file content as uppercase hexadecimal.
        :rtype: ``str``
        :raises ``RepverifyUnreadableError``: If the file cannot be read.
        """
        hasher = self.hasher(usedforsecurity=False)
        try:
            with open(path, "rb") as f:
                for chunk in iter(lambda: f.read(_HASH_CHUNK_SIZE), b""):
                    hasher.update(chunk)
        except OSError as err:
            raise RepverifyUnreadableError(
                path, f"Cannot read content: {err.strerror or err}"
            ) from err
        return hasher.hexdigest().upper()
