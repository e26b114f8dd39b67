# Copyright Red Hat
#
# tests/verify/test_report.py - ReportFormatter tests.
#
# This file is part of the repverify project.
#
# SPDX-License-Identifier: Apache-2.0
import unittest

from repverify.verify.compare import (
    AttributeMismatch,
    MissingAttribute,
    MissingInDestination,
)
from repverify.verify.report import (
    ReportFormatter,
    VERDICT_FAILURE,
    VERDICT_SUCCESS,
)


class TestReportFormatter(unittest.TestCase):
    def setUp(self):
        self.formatter = ReportFormatter()

    def test_no_discrepancies(self):
        lines, verdict = self.formatter.format(())
        self.assertEqual(lines, [])
        self.assertEqual(verdict, VERDICT_SUCCESS)
        self.assertEqual(verdict, "All files are replicated!")

    def test_missing_in_destination(self):
        lines, verdict = self.formatter.format([MissingInDestination("dir1/file3")])
        self.assertEqual(
            lines,
            ['Source file "dir1/file3" does not exist in the destination directory!'],
        )
        self.assertEqual(verdict, VERDICT_FAILURE)
        self.assertEqual(verdict, "Error replicating files!")

    def test_missing_attribute(self):
        lines, _ = self.formatter.format([MissingAttribute("a", attribute="Size")])
        self.assertEqual(lines, ['Target file "a" is missing attribute "Size"!'])

    def test_attribute_mismatch(self):
        lines, _ = self.formatter.format(
            [
                AttributeMismatch(
                    "d/b", attribute="Checksum", source_value="AB", dest_value="CD"
                )
            ]
        )
        self.assertEqual(lines, ['Attribute "Checksum" for file "d/b" does not match!'])

    def test_order_preserved(self):
        discrepancies = [
            AttributeMismatch("d/b", attribute="Checksum"),
            AttributeMismatch("d/b", attribute="Size"),
            MissingInDestination("z"),
        ]
        lines, verdict = self.formatter.format(discrepancies)
        self.assertEqual(len(lines), 3)
        self.assertIn('"Checksum"', lines[0])
        self.assertIn('"Size"', lines[1])
        self.assertIn('"z"', lines[2])
        self.assertEqual(verdict, VERDICT_FAILURE)

    def test_accepts_generator(self):
        lines, verdict = self.formatter.format(
            MissingInDestination(p) for p in ("a", "b")
        )
        self.assertEqual(len(lines), 2)
        self.assertEqual(verdict, VERDICT_FAILURE)
