# Copyright Red Hat
#
# repverify/verify/verifier.py - Replication verifier top-level interface
#
# This file is part of the repverify project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Top-level replication verification interface.
"""
from typing import Any, Dict, List, Optional, TextIO, Tuple, Union
import logging
import json
import os

from .compare import Discrepancy, TreeComparator
from .options import VerifyOptions
from .report import ReportFormatter
from .snapshot import TreeSnapshotter

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


class VerifyResults:
    """
    The results of verifying a destination tree against a source tree.
    """

    def __init__(
        self,
        source_root: str,
        dest_root: str,
        discrepancies: Tuple[Discrepancy, ...],
        lines: List[str],
        verdict: str,
    ):
        """
        Initialise a new ``VerifyResults`` object.

        :param source_root: The source tree root.
        :type source_root: ``str``
        :param dest_root: The destination tree root.
        :type dest_root: ``str``
        :param discrepancies: The ordered discrepancies found.
        :type discrepancies: ``Tuple[Discrepancy, ...]``
        :param lines: One rendered message per discrepancy.
        :type lines: ``List[str]``
        :param verdict: The overall verdict sentence.
        :type verdict: ``str``
        """
        self.source_root = source_root
        self.dest_root = dest_root
        self.discrepancies = tuple(discrepancies)
        self.lines = list(lines)
        self.verdict = verdict

    @property
    def is_equal(self) -> bool:
        """
        True if the destination contains the source with equal attributes.
        """
        return not self.discrepancies

    def __len__(self) -> int:
        return len(self.discrepancies)

    def __str__(self) -> str:
        """
        Return the rendered report: one line per discrepancy followed by
        the verdict.

        :returns: The human readable report.
        :rtype: ``str``
        """
        return "\n".join(self.lines + [self.verdict])

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert this ``VerifyResults`` object into a dictionary
        representation suitable for encoding as JSON.

        :returns: A dictionary mapping this instance's keys to values.
        :rtype: ``Dict[str, Any]``
        """
        return {
            "source": self.source_root,
            "destination": self.dest_root,
            "is_equal": self.is_equal,
            "verdict": self.verdict,
            "discrepancies": [
                dict(d.to_dict(), message=line)
                for d, line in zip(self.discrepancies, self.lines)
            ],
        }

    def json(self, pretty=False) -> str:
        """
        Return a string representation of these results in JSON notation.

        :param pretty: Indent JSON to be human readable.
        :type pretty: ``bool``
        :returns: A JSON representation of this instance.
        :rtype: ``str``
        """
        return json.dumps(self.to_dict(), indent=4 if pretty else None)


class ReplicationVerifier:
    """
    Top-level interface for verifying that one tree was replicated into
    another.
    """

    def __init__(
        self,
        options: Optional[VerifyOptions] = None,
        term_stream: Optional[TextIO] = None,
    ):
        """
        Initialise a new ``ReplicationVerifier``.

        :param options: Options to control this ``ReplicationVerifier``.
        :type options: ``Optional[VerifyOptions]``
        :param term_stream: Optional stream for progress output.
        :type term_stream: ``Optional[TextIO]``
        """
        self.options: VerifyOptions = options or VerifyOptions()
        self.snapshotter: TreeSnapshotter = TreeSnapshotter(
            self.options, term_stream=term_stream
        )
        self.comparator: TreeComparator = TreeComparator()
        self.formatter: ReportFormatter = ReportFormatter()

    def verify(
        self,
        source: Union[str, os.PathLike],
        dest: Union[str, os.PathLike],
    ) -> VerifyResults:
        """
        Snapshot ``source`` and ``dest`` and check that every source entry
        exists in ``dest`` with equal attributes.

        :param source: The source tree root.
        :type source: ``Union[str, os.PathLike]``
        :param dest: The destination tree root.
        :type dest: ``Union[str, os.PathLike]``
        :returns: The verification results.
        :rtype: ``VerifyResults``
        :raises ``RepverifyWalkError``: If either tree cannot be walked.
        :raises ``RepverifyUnreadableError``: If any entry cannot be read.
        """
        _log_debug("Verifying %s against %s with options:\n%s", dest, source, self.options)
        source_snapshot = self.snapshotter.snapshot(source)
        dest_snapshot = self.snapshotter.snapshot(dest)

        discrepancies, is_equal = self.comparator.compare(
            source_snapshot, dest_snapshot
        )
        lines, verdict = self.formatter.format(discrepancies)

        if is_equal:
            _log_info("Verified %d paths in %s", len(source_snapshot), dest)
        else:
            _log_info("Found %d discrepancies in %s", len(discrepancies), dest)

        return VerifyResults(
            source_snapshot.root, dest_snapshot.root, discrepancies, lines, verdict
        )
