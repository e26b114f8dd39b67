# Copyright Red Hat
#
# tests/verify/_util.py - Replication verifier test utilities.
#
# This file is part of the repverify project.
#
# SPDX-License-Identifier: Apache-2.0
import os
from hashlib import sha256

from repverify.verify.attributes import AttributeRecord, EntryKind


def make_record(
    kind=EntryKind.FILE,
    content=b"",
    size=None,
    checksum=None,
    read_only=False,
):
    """
    Factory to create AttributeRecord objects without touching disk.
    """
    if kind != EntryKind.FILE:
        return AttributeRecord(kind, size=0, checksum=None, read_only=read_only)
    if checksum is None:
        checksum = sha256(content).hexdigest().upper()
    if size is None:
        size = len(content)
    return AttributeRecord(kind, size=size, checksum=checksum, read_only=read_only)


def make_dir_record(read_only=False):
    return make_record(EntryKind.DIRECTORY, read_only=read_only)


def make_tree(root, files=None, dirs=None):
    """
    Populate ``root`` with ``files`` (a mapping of relative path to bytes
    content) and empty ``dirs``.
    """
    os.makedirs(root, exist_ok=True)
    for name in dirs or ():
        os.makedirs(os.path.join(root, name), exist_ok=True)
    for name, content in (files or {}).items():
        path = os.path.join(root, name)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "wb") as f:
            f.write(content)
    return root
