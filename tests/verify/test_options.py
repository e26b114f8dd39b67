# Copyright Red Hat
#
# tests/verify/test_options.py - VerifyOptions tests.
#
# This file is part of the repverify project.
#
# SPDX-License-Identifier: Apache-2.0
import unittest
from argparse import Namespace

from repverify import RepverifyArgumentError
from repverify.verify.options import HASH_ALGORITHMS, VerifyOptions


class TestVerifyOptions(unittest.TestCase):
    def test_defaults(self):
        opts = VerifyOptions()
        self.assertEqual(opts.hash_algorithm, "sha256")
        self.assertEqual(opts.workers, 1)
        self.assertFalse(opts.quiet)

    def test_md5_supported(self):
        self.assertIn("md5", HASH_ALGORITHMS)
        self.assertEqual(VerifyOptions(hash_algorithm="md5").hash_algorithm, "md5")

    def test_unknown_algorithm(self):
        with self.assertRaises(RepverifyArgumentError):
            VerifyOptions(hash_algorithm="crc32")

    def test_bad_workers(self):
        with self.assertRaises(RepverifyArgumentError):
            VerifyOptions(workers=0)
        with self.assertRaises(RepverifyArgumentError):
            VerifyOptions(workers="4")

    def test__str__(self):
        xstr = "hash_algorithm=sha256\nworkers=1\nquiet=False"
        self.assertEqual(str(VerifyOptions()), xstr)

    def test_from_cmd_args(self):
        args = Namespace(hash_algorithm="sha512", workers=8, quiet=True, json=False)
        opts = VerifyOptions.from_cmd_args(args)
        self.assertEqual(opts, VerifyOptions("sha512", 8, True))

    def test_from_cmd_args_none_uses_defaults(self):
        args = Namespace(hash_algorithm=None, workers=None, quiet=False)
        self.assertEqual(VerifyOptions.from_cmd_args(args), VerifyOptions())

    def test_from_cmd_args_missing_attrs(self):
        self.assertEqual(VerifyOptions.from_cmd_args(Namespace()), VerifyOptions())

    def test_from_cmd_args_invalid(self):
        with self.assertRaises(RepverifyArgumentError):
            VerifyOptions.from_cmd_args(Namespace(workers=-2))
