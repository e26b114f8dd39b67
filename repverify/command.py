# Copyright Red Hat
#
# repverify/command.py - Replication verifier command interface
#
# This file is part of the repverify project.
#
# SPDX-License-Identifier: Apache-2.0
"""The ``repverify.command`` module provides both the repverify command line
interface infrastructure, and a simple procedural interface to the
``repverify`` library modules.
"""
from argparse import ArgumentParser
from os.path import basename
from typing import Optional, TextIO
import logging
import sys

from repverify import (
    RepverifyError,
    REPVERIFY_DEBUG_VERIFY,
    REPVERIFY_DEBUG_COMMAND,
    REPVERIFY_DEBUG_ALL,
    REPVERIFY_SUBSYSTEM_COMMAND,
    SubsystemFilter,
    set_debug_mask,
    ProgressAwareHandler,
    __version__,
)
from .verify import ReplicationVerifier, VerifyOptions, VerifyResults
from .verify.options import HASH_ALGORITHMS

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


def _log_debug_command(msg, *args, **kwargs):
    """A wrapper for command subsystem debug logs."""
    _log.debug(msg, *args, extra={"subsystem": REPVERIFY_SUBSYSTEM_COMMAND}, **kwargs)


_DEFAULT_LOG_LEVEL = logging.WARNING
_CONSOLE_HANDLER = None

#: Exit status: destination contains the source with equal attributes.
EXIT_REPLICATED = 0
#: Exit status: discrepancies were found.
EXIT_DISCREPANCIES = 1
#: Exit status: the verification could not be performed.
EXIT_ERROR = 2


def verify_trees(
    source: str,
    dest: str,
    options: Optional[VerifyOptions] = None,
    term_stream: Optional[TextIO] = None,
) -> VerifyResults:
    """
    Verify that the tree at ``dest`` is a faithful replica of ``source``.

    :param source: The source tree root.
    :type source: ``str``
    :param dest: The destination tree root.
    :type dest: ``str``
    :param options: Verification options.
    :type options: ``Optional[VerifyOptions]``
    :param term_stream: Optional stream for progress output.
    :type term_stream: ``Optional[TextIO]``
    :returns: The verification results.
    :rtype: ``VerifyResults``
    """
    verifier = ReplicationVerifier(options=options, term_stream=term_stream)
    return verifier.verify(source, dest)


def print_results(results: VerifyResults, json=False, pretty=False):
    """
    Print verification results to stdout.

    :param results: The results to print.
    :type results: ``VerifyResults``
    :param json: Print results in JSON notation.
    :type json: ``bool``
    :param pretty: Indent JSON output.
    :type pretty: ``bool``
    """
    if json:
        print(results.json(pretty=pretty))
    else:
        print(str(results))


def _verify_cmd(cmd_args):
    """
    Verify command handler.

    Compare a destination tree against a source tree.

    :param cmd_args: Command line arguments for the command
    :returns: integer status code returned from ``main()``
    """
    if cmd_args.pretty and not cmd_args.json:
        _log_error("Option --pretty only supported with --json")
        return EXIT_ERROR

    try:
        options = VerifyOptions.from_cmd_args(cmd_args)
    except RepverifyError as err:
        _log_error("Invalid options: %s", err)
        return EXIT_ERROR

    try:
        results = verify_trees(
            cmd_args.source, cmd_args.dest, options, term_stream=sys.stderr
        )
    except RepverifyError as err:
        _log_error("Verification failed: %s", err)
        return EXIT_ERROR

    print_results(results, json=cmd_args.json, pretty=cmd_args.pretty)
    return EXIT_REPLICATED if results.is_equal else EXIT_DISCREPANCIES


def setup_logging(cmd_args):
    """
    Set up repverify logging.
    """
    # pylint: disable=global-statement
    global _CONSOLE_HANDLER
    level = _DEFAULT_LOG_LEVEL
    if cmd_args.verbose and cmd_args.verbose > 1:
        level = logging.DEBUG
    elif cmd_args.verbose and cmd_args.verbose > 0:
        level = logging.INFO

    repverify_log = logging.getLogger("repverify")
    formatter = logging.Formatter("%(levelname)s - %(message)s")
    repverify_log.setLevel(level)
    if repverify_log.hasHandlers():
        repverify_log.handlers.clear()

    _CONSOLE_HANDLER = ProgressAwareHandler()
    _CONSOLE_HANDLER.setLevel(level)
    _CONSOLE_HANDLER.setFormatter(formatter)
    _CONSOLE_HANDLER.addFilter(SubsystemFilter("repverify"))

    repverify_log.addHandler(_CONSOLE_HANDLER)


def shutdown_logging():
    """
    Shut down repverify logging.
    """
    logging.shutdown()


def set_debug(debug_arg):
    """
    Set debugging mask from command line argument.
    """
    if not debug_arg:
        return

    mask_map = {
        "verify": REPVERIFY_DEBUG_VERIFY,
        "command": REPVERIFY_DEBUG_COMMAND,
        "all": REPVERIFY_DEBUG_ALL,
    }

    mask = 0
    for name in debug_arg.split(","):
        if name not in mask_map:
            raise ValueError(f"Unknown debug option: {name}")
        mask |= mask_map[name]
    set_debug_mask(mask)


def _add_verify_args(parser):
    """
    Add verify command arguments.
    """
    parser.add_argument(
        "source",
        metavar="SOURCE",
        type=str,
        help="The root of the original directory tree",
    )
    parser.add_argument(
        "dest",
        metavar="DEST",
        type=str,
        help="The root of the replicated directory tree",
    )
    parser.add_argument(
        "-a",
        "--hash-algorithm",
        choices=HASH_ALGORITHMS,
        default=None,
        help="Content hash algorithm for file checksums (default: sha256)",
    )
    parser.add_argument(
        "-j",
        "--workers",
        type=int,
        metavar="N",
        default=None,
        help="Number of threads used to read file attributes",
    )
    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Do not output progress or status updates",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Report results in JSON notation",
    )
    parser.add_argument(
        "--pretty",
        action="store_true",
        help="Indent JSON output to be human readable",
    )


def main(args):
    """
    Main entry point for repverify.
    """
    parser = ArgumentParser(
        description="Replication Verifier", prog=basename(args[0])
    )

    parser.add_argument(
        "-d",
        "--debug",
        metavar="DEBUGOPTS",
        type=str,
        help="A list of debug options to enable (verify, command, all)",
    )
    parser.add_argument("-v", "--verbose", help="Enable verbose output", action="count")
    parser.add_argument(
        "-V",
        "--version",
        action="version",
        help="Report the version number of repverify",
        version=__version__,
    )
    _add_verify_args(parser)
    parser.set_defaults(func=_verify_cmd)

    cmd_args = parser.parse_args(args[1:])

    status = EXIT_ERROR

    try:
        set_debug(cmd_args.debug)
    except ValueError as err:
        print(err)
        parser.print_help()
        return status

    setup_logging(cmd_args)

    _log_debug_command("Parsed %s", " ".join(args[1:]))

    if cmd_args.debug:
        status = cmd_args.func(cmd_args)
    else:
        try:
            status = cmd_args.func(cmd_args)
        except KeyboardInterrupt:  # pragma: no cover
            _log_info("Exiting on user cancel")
        # pylint: disable=broad-except
        except Exception as err:
            _log_error("Command failed: %s", err)

    shutdown_logging()
    return status


def console_main():
    """
    Console script entry point.
    """
    sys.exit(main(sys.argv))


# vim: set et ts=4 sw=4 :
