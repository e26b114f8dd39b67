# Copyright Red Hat
#
# repverify/verify/snapshot.py - Replication verifier tree snapshots
#
# This file is part of the repverify project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Tree walking and snapshot construction.
"""
from typing import (
    Any,
    Dict,
    Generator,
    Iterator,
    List,
    Mapping,
    Optional,
    TextIO,
    Tuple,
    Union,
)
from collections import abc
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from types import MappingProxyType
import itertools
import posixpath
import logging
import os

from repverify import (
    REPVERIFY_SUBSYSTEM_VERIFY,
    RepverifyError,
    RepverifyWalkError,
)
from repverify.progress import ProgressFactory

from .attributes import AttributeExtractor, AttributeRecord
from .options import VerifyOptions

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


def _log_debug_verify(msg, *args, **kwargs):
    """A wrapper for verify subsystem debug logs."""
    _log.debug(msg, *args, extra={"subsystem": REPVERIFY_SUBSYSTEM_VERIFY}, **kwargs)


#: Path key of the tree root itself.
ROOT_KEY = "."


def path_key(root: str, path: str) -> str:
    """
    Return the path key for ``path`` relative to ``root``: separators are
    normalised to ``/`` and ``.``/``..`` segments are resolved. The root
    itself maps to ``ROOT_KEY``.

    :param root: The tree root.
    :type root: ``str``
    :param path: A path at or below ``root``.
    :type path: ``str``
    :returns: The normalised root-relative key.
    :rtype: ``str``
    """
    relative = os.path.relpath(path, root)
    if os.sep != "/":
        relative = relative.replace(os.sep, "/")
    return posixpath.normpath(relative)


class Snapshot(abc.Mapping):
    """
    An immutable mapping from path key to ``AttributeRecord`` for one
    directory tree.
    """

    def __init__(self, root: str, entries: Mapping[str, AttributeRecord]):
        """
        Initialise a new ``Snapshot`` object.

        :param root: The root path the snapshot was built from.
        :type root: ``str``
        :param entries: The path key to record mapping. The mapping is
                        copied so later changes to ``entries`` do not
                        affect the snapshot.
        :type entries: ``Mapping[str, AttributeRecord]``
        """
        self.root: str = root
        self._entries = MappingProxyType(dict(entries))

    def __getitem__(self, key: str) -> AttributeRecord:
        return self._entries[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self):
        return f"Snapshot(root={self.root!r}, entries={len(self)})"

    def __str__(self):
        return "\n".join(f"{key}: {self._entries[key]}" for key in self.paths())

    def paths(self) -> List[str]:
        """
        Return the path keys of this snapshot in lexicographic order.

        :returns: A sorted list of path keys.
        :rtype: ``List[str]``
        """
        return sorted(self._entries)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert this ``Snapshot`` object into a dictionary representation
        suitable for encoding as JSON.

        :returns: A dictionary mapping this instance's keys to values.
        :rtype: ``Dict[str, Any]``
        """
        return {
            "root": self.root,
            "entries": {key: self._entries[key].to_dict() for key in self.paths()},
        }


class TreeSnapshotter:
    """
    Walks a directory tree and builds a ``Snapshot`` of it.
    """

    def __init__(
        self,
        options: Optional[VerifyOptions] = None,
        term_stream: Optional[TextIO] = None,
    ):
        """
        Initialise a new ``TreeSnapshotter`` object.

        :param options: Options to control this ``TreeSnapshotter``.
        :type options: ``Optional[VerifyOptions]``
        :param term_stream: Optional stream for progress output.
        :type term_stream: ``Optional[TextIO]``
        """
        self.options: VerifyOptions = options or VerifyOptions()
        self.extractor: AttributeExtractor = AttributeExtractor(
            self.options.hash_algorithm
        )
        self.term_stream: Optional[TextIO] = term_stream

    def _gather_paths(self, root: str) -> List[str]:
        """
        Return every path under ``root``, including ``root`` itself.
        Directory symlinks are listed but not descended into.

        :param root: The root directory to walk.
        :type root: ``str``
        :returns: A list of paths, each appearing exactly once.
        :rtype: ``List[str]``
        :raises ``RepverifyWalkError``: If any directory cannot be listed.
        """

        def _onerror(err: OSError):
            raise RepverifyWalkError(
                err.filename or root, f"Cannot traverse: {err.strerror or err}"
            ) from err

        return [root] + [
            os.path.join(dirpath, name)
            for dirpath, dirnames, filenames in os.walk(
                root, onerror=_onerror, followlinks=False
            )
            for name in itertools.chain(filenames, dirnames)
        ]

    def snapshot(self, root: Union[str, os.PathLike]) -> Snapshot:
        """
        Walk the tree at ``root`` and return a ``Snapshot`` of every entry.

        :param root: The root directory of the tree.
        :type root: ``Union[str, os.PathLike]``
        :returns: A new ``Snapshot`` for the tree.
        :rtype: ``Snapshot``
        :raises ``RepverifyWalkError``: If ``root`` does not exist, is not a
                                        directory, or cannot be traversed.
        :raises ``RepverifyUnreadableError``: If any entry cannot be read.
        """
        root = os.fspath(root)
        if not os.path.lexists(root):
            raise RepverifyWalkError(root, "No such directory")
        if not os.path.isdir(root):
            raise RepverifyWalkError(root, "Not a directory")
        if os.path.islink(root):
            root = os.path.realpath(root)

        _log_info("Gathering paths to scan from %s", root)
        to_visit = self._gather_paths(root)
        total = len(to_visit)
        _log_debug_verify("Found %d paths under %s", total, root)

        progress = ProgressFactory.get_progress(
            f"Snapshotting {root}",
            quiet=self.options.quiet,
            term_stream=self.term_stream,
        )

        start_time = datetime.now()
        progress.start(total)

        entries: Dict[str, AttributeRecord] = {}
        records = self._extract_all(to_visit)
        try:
            for i, (pathname, record) in enumerate(records):
                key = path_key(root, pathname)
                progress.progress(i, f"Scanning {key}")
                entries[key] = record
        except (KeyboardInterrupt, SystemExit):
            progress.cancel("Quit!")
            raise
        except RepverifyError:
            progress.cancel("Failed!")
            raise
        finally:
            records.close()

        end_time = datetime.now()
        progress.end(f"Scanned {total} paths in {end_time - start_time}")
        return Snapshot(root, entries)

    def _extract_all(
        self, paths: List[str]
    ) -> Generator[Tuple[str, AttributeRecord], None, None]:
        """
        Yield ``(path, AttributeRecord)`` pairs for ``paths`` in order,
        extracting in parallel when more than one worker is configured.

        :param paths: The paths to extract.
        :type paths: ``List[str]``
        :returns: An iterator over ``(path, AttributeRecord)`` tuples.
        """
        if self.options.workers == 1:
            for pathname in paths:
                yield pathname, self.extractor.extract(pathname)
            return

        executor = ThreadPoolExecutor(
            max_workers=self.options.workers, thread_name_prefix="repverify-extract"
        )
        try:
            futures = [executor.submit(self.extractor.extract, p) for p in paths]
            for pathname, future in zip(paths, futures):
                yield pathname, future.result()
        finally:
            executor.shutdown(wait=True, cancel_futures=True)
