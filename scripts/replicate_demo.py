#!/usr/bin/python3
# Copyright Red Hat
#
# replicate_demo.py - simple example driver for repverify.verify
#
# This file is part of the repverify project.
#
# SPDX-License-Identifier: Apache-2.0
from argparse import ArgumentParser
import logging
import tempfile
import random
import shutil
import sys
import os

from repverify import RepverifyError
from repverify.verify import ReplicationVerifier, VerifyOptions

LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}

#: Files created in the source tree, relative to its root.
DEMO_FILES = ("file1", "file2", "dir1/file3", "dir1/file4")

#: Upper bound on the size of generated files.
MAX_FILE_SIZE = 1000000


def create_source(root, rng):
    """
    Populate ``root`` with ``DEMO_FILES`` of random size and content.
    """
    for name in DEMO_FILES:
        path = os.path.join(root, name)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "wb") as f:
            f.write(rng.randbytes(rng.randrange(MAX_FILE_SIZE)))


def main(args=None):
    parser = ArgumentParser(prog="replicate_demo.py")
    parser.add_argument(
        "-l",
        "--log-level",
        default="info",
        help=f"Set log level ({', '.join(LOG_LEVELS.keys())})",
        choices=LOG_LEVELS.keys(),
    )
    parser.add_argument(
        "-s",
        "--seed",
        type=int,
        default=0,
        help="Seed for generated file content",
    )
    parser.add_argument(
        "-n",
        "--no-copy",
        action="store_true",
        help="Do not replicate the source tree (verification should fail)",
    )
    parser.add_argument(
        "-D",
        "--delete",
        action="append",
        metavar="PATH",
        default=[],
        help="Delete PATH from the destination after replicating",
    )
    parser.add_argument(
        "workdir",
        type=str,
        nargs="?",
        default=None,
        help="Empty or new directory in which to create the src and dest "
        "trees (default: a new temporary directory)",
    )
    args = parser.parse_args(args)

    repverify_log = logging.getLogger("repverify")
    formatter = logging.Formatter("%(levelname)s - %(message)s")
    repverify_log.setLevel(LOG_LEVELS[args.log_level])
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    repverify_log.addHandler(console_handler)

    workdir = args.workdir or tempfile.mkdtemp(prefix="repverify-demo-")
    if os.path.exists(workdir) and (
        not os.path.isdir(workdir) or os.listdir(workdir)
    ):
        print(f"Refusing to use non-empty path: {workdir}", file=sys.stderr)
        sys.exit(2)
    repverify_log.info("Creating demo trees in %s", workdir)

    src = os.path.join(workdir, "src")
    dest = os.path.join(workdir, "dest")
    os.makedirs(src)
    os.makedirs(dest)

    create_source(src, random.Random(args.seed))
    if not args.no_copy:
        shutil.copytree(src, dest, dirs_exist_ok=True)
    for path in args.delete:
        os.unlink(os.path.join(dest, path))

    verifier = ReplicationVerifier(VerifyOptions(hash_algorithm="md5"))
    try:
        results = verifier.verify(src, dest)
    except RepverifyError as err:
        print(f"Verification failed: {err}", file=sys.stderr)
        sys.exit(2)
    print(results)
    sys.exit(0 if results.is_equal else 1)


if __name__ == "__main__":
    main()
