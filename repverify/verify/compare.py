# Copyright Red Hat
#
# repverify/verify/compare.py - Replication verifier snapshot comparison
#
# This file is part of the repverify project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Snapshot comparison and discrepancy types.

Comparison is a one-directional containment check: every source entry must
exist in the destination with equal attributes. Entries that exist only in
the destination are never reported.
"""
from typing import Any, Callable, Dict, Iterator, Mapping, Optional, Tuple
from dataclasses import dataclass
from enum import Enum
import logging

from repverify import REPVERIFY_SUBSYSTEM_VERIFY

from .attributes import AttributeRecord

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


def _log_debug_verify(msg, *args, **kwargs):
    """A wrapper for verify subsystem debug logs."""
    _log.debug(msg, *args, extra={"subsystem": REPVERIFY_SUBSYSTEM_VERIFY}, **kwargs)


#: Sentinel returned by attribute getters when a record lacks the attribute.
_MISSING = object()

ATTR_CHECKSUM = "Checksum"
ATTR_SIZE = "Size"
ATTR_DIR = "Dir"
ATTR_FILE = "File"
ATTR_READ_ONLY = "Read-only"


def _bool_str(value: bool) -> str:
    return "true" if value else "false"


def _getter(field: str, canonical: Callable[[Any], str]) -> Callable[[Any], Any]:
    """
    Return a function mapping a record to the canonical string value of
    ``field``, or to ``_MISSING`` if the record has no such field.
    """

    def _get(record):
        value = getattr(record, field, _MISSING)
        if value is _MISSING:
            return _MISSING
        return canonical(value)

    return _get


#: The attributes compared for every path, in comparison order.
ATTRIBUTES: Tuple[Tuple[str, Callable[[Any], Any]], ...] = (
    (ATTR_CHECKSUM, _getter("checksum", lambda v: v or "")),
    (ATTR_SIZE, _getter("size", lambda v: str(int(v)))),
    (ATTR_DIR, _getter("is_dir", _bool_str)),
    (ATTR_FILE, _getter("is_file", _bool_str)),
    (ATTR_READ_ONLY, _getter("read_only", _bool_str)),
)


class DiscrepancyType(Enum):
    """
    Enum for the kinds of discrepancy between two snapshots.
    """

    MISSING_IN_DESTINATION = "missing_in_destination"
    MISSING_ATTRIBUTE = "missing_attribute"
    ATTRIBUTE_MISMATCH = "attribute_mismatch"


@dataclass(frozen=True)
class Discrepancy:
    """
    Base class for a single difference between a source and destination
    snapshot.
    """

    #: The path key the discrepancy applies to
    path: str

    #: The kind of discrepancy, set by subclasses
    discrepancy_type = None

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert this ``Discrepancy`` into a dictionary representation
        suitable for encoding as JSON.

        :returns: A dictionary mapping this instance's keys to values.
        :rtype: ``Dict[str, Any]``
        """
        out = {"type": self.discrepancy_type.value}
        out.update(self.__dict__)
        return out


@dataclass(frozen=True)
class MissingInDestination(Discrepancy):
    """
    A source path does not exist in the destination snapshot.
    """

    discrepancy_type = DiscrepancyType.MISSING_IN_DESTINATION


@dataclass(frozen=True)
class MissingAttribute(Discrepancy):
    """
    The destination record for a path lacks an attribute.
    """

    #: The name of the missing attribute
    attribute: str = ""

    discrepancy_type = DiscrepancyType.MISSING_ATTRIBUTE


@dataclass(frozen=True)
class AttributeMismatch(Discrepancy):
    """
    An attribute value differs between source and destination.
    """

    #: The name of the attribute that differs
    attribute: str = ""
    #: The canonical source value
    source_value: Optional[str] = None
    #: The canonical destination value
    dest_value: Optional[str] = None

    discrepancy_type = DiscrepancyType.ATTRIBUTE_MISMATCH


class ComparisonResult:
    """
    The outcome of comparing two snapshots. Unpacks as the 2-tuple
    ``(discrepancies, is_equal)``.
    """

    def __init__(self, discrepancies: Tuple[Discrepancy, ...]):
        """
        Initialise a new ``ComparisonResult``.

        :param discrepancies: The ordered discrepancies found.
        :type discrepancies: ``Tuple[Discrepancy, ...]``
        """
        self.discrepancies: Tuple[Discrepancy, ...] = tuple(discrepancies)

    @property
    def is_equal(self) -> bool:
        """
        True if no discrepancies were found.
        """
        return not self.discrepancies

    def __iter__(self) -> Iterator:
        return iter((self.discrepancies, self.is_equal))

    def __repr__(self):
        return (
            f"ComparisonResult(discrepancies={len(self.discrepancies)}, "
            f"is_equal={self.is_equal})"
        )


class TreeComparator:
    """
    Compare a source snapshot against a destination snapshot.
    """

    def __init__(self, attributes=ATTRIBUTES):
        """
        Initialise a new ``TreeComparator``.

        :param attributes: The ordered ``(name, getter)`` pairs to compare.
        """
        self.attributes = tuple(attributes)

    def _compare_records(
        self, path: str, src: AttributeRecord, dest: AttributeRecord
    ) -> Iterator[Discrepancy]:
        for name, getter in self.attributes:
            src_value = getter(src)
            dest_value = getter(dest)
            if dest_value is _MISSING:
                _log_debug_verify("Destination '%s' missing attribute %s", path, name)
                yield MissingAttribute(path, attribute=name)
            elif src_value is not _MISSING and src_value != dest_value:
                _log_debug_verify(
                    "Attribute %s mismatch for '%s' (%s != %s)",
                    name,
                    path,
                    src_value,
                    dest_value,
                )
                yield AttributeMismatch(
                    path,
                    attribute=name,
                    source_value=src_value,
                    dest_value=dest_value,
                )

    def compare(
        self,
        source: Mapping[str, AttributeRecord],
        dest: Mapping[str, AttributeRecord],
    ) -> ComparisonResult:
        """
        Compare ``source`` against ``dest`` in lexicographic path order.

        :param source: The source snapshot.
        :type source: ``Mapping[str, AttributeRecord]``
        :param dest: The destination snapshot.
        :type dest: ``Mapping[str, AttributeRecord]``
        :returns: The comparison result.
        :rtype: ``ComparisonResult``
        """
        discrepancies = []
        for path in sorted(source):
            dest_record = dest.get(path)
            if dest_record is None:
                _log_debug_verify("Source path '%s' missing in destination", path)
                discrepancies.append(MissingInDestination(path))
                continue
            discrepancies.extend(
                self._compare_records(path, source[path], dest_record)
            )

        _log_info(
            "Compared %d source paths against %d destination paths: "
            "%d discrepancies",
            len(source),
            len(dest),
            len(discrepancies),
        )
        return ComparisonResult(tuple(discrepancies))
