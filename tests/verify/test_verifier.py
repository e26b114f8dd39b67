# Copyright Red Hat
#
# tests/verify/test_verifier.py - ReplicationVerifier tests.
#
# This file is part of the repverify project.
#
# SPDX-License-Identifier: Apache-2.0
import unittest
import tempfile
import shutil
import json
import os

from repverify import RepverifyUnreadableError, RepverifyWalkError
from repverify.verify.compare import AttributeMismatch, MissingInDestination
from repverify.verify.options import VerifyOptions
from repverify.verify.report import VERDICT_FAILURE, VERDICT_SUCCESS
from repverify.verify.verifier import ReplicationVerifier, VerifyResults

from ._util import make_tree


class TestReplicationVerifier(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.src = os.path.join(self._tmp.name, "src")
        self.dest = os.path.join(self._tmp.name, "dest")
        make_tree(self.src, files={"a": b"X", "d/b": b"Y"})
        self.verifier = ReplicationVerifier(VerifyOptions(quiet=True))

    def tearDown(self):
        self._tmp.cleanup()

    def _replicate(self):
        shutil.copytree(self.src, self.dest)

    def test_identical_copy(self):
        self._replicate()
        results = self.verifier.verify(self.src, self.dest)
        self.assertIsInstance(results, VerifyResults)
        self.assertTrue(results.is_equal)
        self.assertEqual(results.discrepancies, ())
        self.assertEqual(results.lines, [])
        self.assertEqual(results.verdict, VERDICT_SUCCESS)
        self.assertEqual(str(results), VERDICT_SUCCESS)

    def test_truncated_destination_file(self):
        self._replicate()
        with open(os.path.join(self.dest, "d", "b"), "wb"):
            pass
        results = self.verifier.verify(self.src, self.dest)
        self.assertFalse(results.is_equal)
        self.assertEqual(
            [(d.path, d.attribute) for d in results.discrepancies],
            [("d/b", "Checksum"), ("d/b", "Size")],
        )
        self.assertEqual(results.verdict, VERDICT_FAILURE)
        self.assertEqual(
            str(results).splitlines(),
            [
                'Attribute "Checksum" for file "d/b" does not match!',
                'Attribute "Size" for file "d/b" does not match!',
                "Error replicating files!",
            ],
        )

    def test_one_byte_change(self):
        self._replicate()
        with open(os.path.join(self.dest, "a"), "wb") as f:
            f.write(b"x")
        results = self.verifier.verify(self.src, self.dest)
        self.assertEqual(len(results), 1)
        self.assertIsInstance(results.discrepancies[0], AttributeMismatch)
        self.assertEqual(results.discrepancies[0].attribute, "Checksum")

    def test_missing_destination_file(self):
        self._replicate()
        os.unlink(os.path.join(self.dest, "a"))
        results = self.verifier.verify(self.src, self.dest)
        self.assertEqual(results.discrepancies, (MissingInDestination("a"),))

    def test_not_replicated(self):
        os.mkdir(self.dest)
        results = self.verifier.verify(self.src, self.dest)
        self.assertEqual(
            [d.path for d in results.discrepancies], ["a", "d", "d/b"]
        )

    def test_relative_symlink_copied_to_other_depth(self):
        make_tree(self._tmp.name, files={"target": b"T"})
        os.symlink(os.path.join("..", "target"), os.path.join(self.src, "link"))
        dest = os.path.join(self._tmp.name, "deep", "dest")
        shutil.copytree(self.src, dest, symlinks=True)
        self.assertEqual(
            os.readlink(os.path.join(dest, "link")),
            os.readlink(os.path.join(self.src, "link")),
        )
        results = self.verifier.verify(self.src, dest)
        self.assertEqual(results.discrepancies, ())
        self.assertEqual(results.verdict, VERDICT_SUCCESS)

    def test_destination_extras_ignored(self):
        self._replicate()
        make_tree(self.dest, files={"orphan": b"extra", "d/new": b"new"})
        self.assertTrue(self.verifier.verify(self.src, self.dest).is_equal)

    def test_empty_trees(self):
        empty_src = os.path.join(self._tmp.name, "empty_src")
        empty_dest = os.path.join(self._tmp.name, "empty_dest")
        os.mkdir(empty_src)
        os.mkdir(empty_dest)
        results = self.verifier.verify(empty_src, empty_dest)
        self.assertTrue(results.is_equal)
        self.assertEqual(results.verdict, VERDICT_SUCCESS)

    def test_parallel_workers(self):
        self._replicate()
        verifier = ReplicationVerifier(VerifyOptions(workers=3, quiet=True))
        self.assertTrue(verifier.verify(self.src, self.dest).is_equal)

    def test_md5(self):
        self._replicate()
        verifier = ReplicationVerifier(VerifyOptions(hash_algorithm="md5", quiet=True))
        self.assertTrue(verifier.verify(self.src, self.dest).is_equal)

    def test_missing_destination_root_fails(self):
        with self.assertRaises(RepverifyWalkError):
            self.verifier.verify(self.src, self.dest)

    def test_missing_source_root_fails(self):
        self._replicate()
        with self.assertRaises(RepverifyWalkError):
            self.verifier.verify(os.path.join(self._tmp.name, "nope"), self.dest)

    def test_unreadable_entry_fails(self):
        self._replicate()
        self.verifier.snapshotter.extractor.calculate_checksum = _raise_unreadable
        with self.assertRaises(RepverifyUnreadableError):
            self.verifier.verify(self.src, self.dest)

    def test_to_dict_and_json(self):
        self._replicate()
        os.unlink(os.path.join(self.dest, "a"))
        results = self.verifier.verify(self.src, self.dest)
        d = results.to_dict()
        self.assertFalse(d["is_equal"])
        self.assertEqual(d["verdict"], VERDICT_FAILURE)
        self.assertEqual(d["discrepancies"][0]["type"], "missing_in_destination")
        self.assertEqual(d["discrepancies"][0]["path"], "a")
        self.assertIn("does not exist", d["discrepancies"][0]["message"])
        self.assertEqual(json.loads(results.json()), d)
        self.assertIn("\n    ", results.json(pretty=True))


def _raise_unreadable(path):
    raise RepverifyUnreadableError(path, "Cannot read content: Input/output error")
