# Copyright Red Hat
#
# repverify/__init__.py - Replication verifier package initialisation
#
# This file is part of the repverify project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Repverify top-level package.
"""
from ._repverify import *  # noqa: F401, F403
from ._repverify import __all__  # noqa: F401

__version__ = "0.1.0"
