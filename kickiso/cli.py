"""
Command line interface for kickiso.
"""

# SPDX-License-Identifier: GPL-2.0-or-later

import argparse
import configparser
import logging
import logging.config
import os
import sys
from typing import Dict, List, Optional

from kickiso.api import KickIsoAPI
from kickiso.cexceptions import ConfigurationError, KickIsoException
from kickiso.enums import ExitCode, LogLevel
from kickiso.settings import read_settings_file, resolve_pipeline_config

LOGGING_CONFIG = "/etc/kickiso/logging_config.conf"

logger = logging.getLogger()


def cli_generate_main_parser() -> argparse.ArgumentParser:
    """
    Generates the CLI parser for kickiso. Required parameters are not enforced by argparse so that the resolver can
    report them with its own messages.
    """
    op = argparse.ArgumentParser(
        prog="kickiso",
        description="Build a customized installation ISO from a distribution's network install ISO.",
        add_help=False,
    )
    op.add_argument("--mirror", help="base URL to fetch the ISO and the checksum manifest from")
    op.add_argument("--iso", help="file name of the ISO on the mirror")
    op.add_argument("--checksum", help="file name of the signed checksum manifest on the mirror")
    op.add_argument("--cache-dir", dest="cache_dir", help="absolute path of the download cache")
    op.add_argument("--mount-point", dest="mount_point", help="absolute path to loop mount the ISO at")
    op.add_argument("--layout-dir", dest="layout_dir", help="absolute path of the extracted and customized tree")
    op.add_argument("--output", help="file name of the ISO to produce")
    op.add_argument(
        "-c",
        "--config",
        metavar="FILE",
        help="The location of the kickiso settings file (default: /etc/kickiso/settings.yaml if present).",
    )
    op.add_argument("--kickstart", metavar="FILE", help="kickstart file to put into the ISO root")
    op.add_argument("--boot-menu", dest="boot_menu", metavar="FILE", help="isolinux.cfg replacement")
    op.add_argument("--guest-tools", dest="guest_tools", metavar="DIR", help="guest tools directory (git submodule)")
    op.add_argument(
        "-l",
        "--log-level",
        dest="log_level",
        metavar="LEVEL",
        default="INFO",
        help="log level (ie. DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    op.add_argument("-h", "--help", action="store_true", help="show this help message and exit")
    return op


def setup_logging(log_level: str):
    """
    Use the logging configuration file if there is one, otherwise log to stderr. The root logger gets ``log_level`` in
    both cases.

    :param log_level: The level for the root logger.
    :raises ConfigurationError: In case the logging configuration file could not be applied.
    """
    level = LogLevel.to_enum(log_level).value
    if os.path.exists(LOGGING_CONFIG):
        try:
            logging.config.fileConfig(LOGGING_CONFIG)
        except (OSError, ValueError, KeyError, configparser.Error) as error:
            raise ConfigurationError(
                'Could not apply logging configuration "%s": %s', LOGGING_CONFIG, error
            ) from error
        logging.getLogger().setLevel(level)
        return
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(levelname)s | %(message)s",
    )


def settings_overrides(options: argparse.Namespace) -> Dict[str, str]:
    """
    :param options: The parsed command line.
    :return: The settings given on the command line.
    """
    overrides = {}
    if options.kickstart:
        overrides["kickstart_file"] = options.kickstart
    if options.boot_menu:
        overrides["boot_menu_file"] = options.boot_menu
    if options.guest_tools:
        overrides["guest_tools_dir"] = options.guest_tools
    return overrides


def main(argv: Optional[List[str]] = None) -> int:
    """
    CLI entry point

    :param argv: The arguments without the program name. Defaults to ``sys.argv[1:]``.
    :return: The exit code, see :class:`kickiso.enums.ExitCode`.
    """
    op = cli_generate_main_parser()
    options = op.parse_args(argv)
    if options.help:
        op.print_help(sys.stderr)
        return ExitCode.FAILURE

    try:
        LogLevel.to_enum(options.log_level)
        config = resolve_pipeline_config(
            mirror=options.mirror,
            iso=options.iso,
            checksum=options.checksum,
            cache_dir=options.cache_dir,
            mount_point=options.mount_point,
            layout_dir=options.layout_dir,
            output=options.output,
        )
    except ValueError as error:
        print(str(error), file=sys.stderr)
        return ExitCode.CONFIGURATION
    except KickIsoException as error:
        print(str(error), file=sys.stderr)
        return error.exit_code

    try:
        setup_logging(options.log_level)
        settings = read_settings_file(options.config).from_dict(
            settings_overrides(options)
        )
        api = KickIsoAPI(config, settings)
        api.build_iso()
    except KickIsoException as error:
        logger.error("%s", error)
        print(str(error), file=sys.stderr)
        return error.exit_code
    except KeyboardInterrupt:
        logger.error("Interrupted")
        return ExitCode.INTERRUPTED
    return ExitCode.OK


if __name__ == "__main__":
    sys.exit(main())
