# Copyright Red Hat
#
# tests/verify/__init__.py - Replication verifier verify test package
#
# This file is part of the repverify project.
#
# SPDX-License-Identifier: Apache-2.0
