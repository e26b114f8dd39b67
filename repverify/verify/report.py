# Copyright Red Hat
#
# repverify/verify/report.py - Replication verifier report formatting
#
# This file is part of the repverify project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Human readable rendering of comparison discrepancies.
"""
from typing import Iterable, List, Tuple

from .compare import Discrepancy, DiscrepancyType

#: Verdict when no discrepancies were found.
VERDICT_SUCCESS = "All files are replicated!"
#: Verdict when at least one discrepancy was found.
VERDICT_FAILURE = "Error replicating files!"

_TEMPLATES = {
    DiscrepancyType.MISSING_IN_DESTINATION: (
        'Source file "{path}" does not exist in the destination directory!'
    ),
    DiscrepancyType.MISSING_ATTRIBUTE: (
        'Target file "{path}" is missing attribute "{attribute}"!'
    ),
    DiscrepancyType.ATTRIBUTE_MISMATCH: (
        'Attribute "{attribute}" for file "{path}" does not match!'
    ),
}


class ReportFormatter:
    """
    Render discrepancies as message lines and an overall verdict.
    """

    @staticmethod
    def format_one(discrepancy: Discrepancy) -> str:
        """
        Render a single discrepancy as a message line.

        :param discrepancy: The discrepancy to render.
        :type discrepancy: ``Discrepancy``
        :returns: The message line.
        :rtype: ``str``
        """
        template = _TEMPLATES[discrepancy.discrepancy_type]
        return template.format(**discrepancy.__dict__)

    def format(self, discrepancies: Iterable[Discrepancy]) -> Tuple[List[str], str]:
        """
        Render ``discrepancies`` in order.

        :param discrepancies: The discrepancies to render.
        :type discrepancies: ``Iterable[Discrepancy]``
        :returns: A 2-tuple of (message lines, verdict sentence).
        :rtype: ``Tuple[List[str], str]``
        """
        lines = [self.format_one(d) for d in discrepancies]
        return lines, VERDICT_FAILURE if lines else VERDICT_SUCCESS
