# Copyright Red Hat
#
# repverify/verify/__init__.py - Replication verifier verify package
#
# This file is part of the repverify project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Replication verification package.

Provides tree snapshots, attribute extraction, snapshot comparison and
report formatting. The main entry points are ``ReplicationVerifier`` and
``VerifyOptions``.
"""
from .attributes import AttributeExtractor, AttributeRecord, EntryKind
from .compare import (
    ATTRIBUTES,
    AttributeMismatch,
    ComparisonResult,
    Discrepancy,
    DiscrepancyType,
    MissingAttribute,
    MissingInDestination,
    TreeComparator,
)
from .options import VerifyOptions
from .report import ReportFormatter, VERDICT_FAILURE, VERDICT_SUCCESS
from .snapshot import Snapshot, TreeSnapshotter
from .verifier import ReplicationVerifier, VerifyResults

__all__ = [
    "ATTRIBUTES",
    "AttributeExtractor",
    "AttributeMismatch",
    "AttributeRecord",
    "ComparisonResult",
    "Discrepancy",
    "DiscrepancyType",
    "EntryKind",
    "MissingAttribute",
    "MissingInDestination",
    "ReplicationVerifier",
    "ReportFormatter",
    "Snapshot",
    "TreeComparator",
    "TreeSnapshotter",
    "VERDICT_FAILURE",
    "VERDICT_SUCCESS",
    "VerifyOptions",
    "VerifyResults",
]
