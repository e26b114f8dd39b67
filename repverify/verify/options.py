# Copyright Red Hat
#
# repverify/verify/options.py - Replication verifier options
#
# This file is part of the repverify project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Replication verification options.
"""
from dataclasses import dataclass, fields
from argparse import Namespace
import logging

from repverify import RepverifyArgumentError

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error

#: Content hash algorithms accepted by ``VerifyOptions.hash_algorithm``.
HASH_ALGORITHMS = ("md5", "sha1", "sha256", "sha512")


@dataclass(frozen=True)
class VerifyOptions:
    """
    Replication verification options.
    """

    #: Content hash algorithm used for file checksums
    hash_algorithm: str = "sha256"
    #: Number of worker threads used to extract attributes
    workers: int = 1
    #: Do not output progress or status updates
    quiet: bool = False

    def __post_init__(self):
        """
        Validate option values.

        :raises ``RepverifyArgumentError``: If ``hash_algorithm`` is not
                                            known or ``workers`` is not a
                                            positive integer.
        """
        if self.hash_algorithm not in HASH_ALGORITHMS:
            raise RepverifyArgumentError(
                f"Unknown hash algorithm: {self.hash_algorithm}"
            )
        if not isinstance(self.workers, int) or self.workers < 1:
            raise RepverifyArgumentError(
                f"Worker count must be a positive integer: {self.workers}"
            )

    def __str__(self):
        """
        Return a human readable string representation of this
        ``VerifyOptions`` instance.

        :returns: A human readable string.
        :rtype: ``str``
        """
        return "\n".join(f"{key}={val}" for key, val in self.__dict__.items())

    @classmethod
    def from_cmd_args(cls, cmd_args: Namespace) -> "VerifyOptions":
        """
        Initialise VerifyOptions from command line arguments.

        Arguments that are absent from ``cmd_args`` or set to ``None`` take
        their default values.

        :param cmd_args: The command line arguments.
        :type cmd_args: ``Namespace``
        :returns: A new ``VerifyOptions`` instance
        :rtype: ``VerifyOptions``
        """
        field_names = {f.name for f in fields(cls)}
        kwargs = {
            name: getattr(cmd_args, name)
            for name in field_names
            if getattr(cmd_args, name, None) is not None
        }
        options = cls(**kwargs)
        _log_debug("Initialised VerifyOptions from arguments: %s", repr(options))
        return options
