"""
Misc heavy lifting functions for kickiso
"""

# SPDX-License-Identifier: GPL-2.0-or-later

import contextlib
import logging
import os
import shutil
import subprocess
import sys
import traceback
from typing import Any, Iterator, List, Tuple, Union

import distro

logger = logging.getLogger()

COMMAND_NOT_FOUND = 127


def log_exc() -> None:
    """
    Log an exception.
    """
    (exception_type, exception_value, exception_traceback) = sys.exc_info()
    logger.info("Exception occurred: %s", exception_type)
    logger.info("Exception value: %s", exception_value)
    logger.info(
        "Exception Info:\n%s",
        "\n".join(traceback.format_list(traceback.extract_tb(exception_traceback))),
    )


def get_family() -> str:
    """
    Get family of running operating system.

    Family is the base Linux distribution of a Linux distribution, with a set of common parents.

    :return: May be "redhat", "debian" or "suse" currently. If none of these are detected then just the distro name is
             returned.
    """
    redhat_list = (
        "red hat",
        "redhat",
        "scientific linux",
        "fedora",
        "centos",
        "almalinux",
        "rocky linux",
        "oracle linux server",
    )

    distro_name = distro.name().lower()
    for item in redhat_list:
        if item in distro_name:
            return "redhat"
    if "debian" in distro_name or "ubuntu" in distro_name:
        return "debian"
    if "suse" in distro.like():
        return "suse"
    return distro_name


def default_mkisofs_command() -> str:
    """
    Debian and Ubuntu ship the ISO mastering tool as ``genisoimage`` only, everybody else still offers ``mkisofs``.

    :return: The name of the mastering binary for the running distribution.
    """
    if get_family() == "debian":
        return "genisoimage"
    return "mkisofs"


def command_existing(cmd: str) -> bool:
    r"""
    This takes a command which should be known to the system and checks if it is available.

    :param cmd: The executable to check
    :return: If the binary does not exist ``False``, otherwise ``True``.
    """
    return shutil.which(cmd) is not None


@contextlib.contextmanager
def pushd(directory: Union[str, "os.PathLike[str]"]) -> Iterator[str]:
    """
    Change the working directory for the duration of the ``with`` block. The previous working directory is restored
    on every way out of the block, exceptions included.

    :param directory: The directory to change into.
    :return: The previous working directory.
    """
    old_dir = os.getcwd()
    os.chdir(directory)
    logger.debug('Changed working directory to "%s"', directory)
    try:
        yield old_dir
    finally:
        os.chdir(old_dir)
        logger.debug('Restored working directory "%s"', old_dir)


def subprocess_sp(
    cmd: Union[str, List[str]], shell: bool = False, process_input: Any = None
) -> Tuple[str, int]:
    """
    Call a shell process and redirect the output for internal usage.

    :param cmd: The command to execute in a subprocess call.
    :param shell: Whether to use a shell or not for the execution of the command.
    :param process_input: If there is any input needed for that command to stdin.
    :return: A tuple of the output and the return code. A command which could not be started at all reports the return
             code 127, just like a shell would.
    """
    logger.info("running: %s", cmd)

    stdin = None
    if process_input:
        stdin = subprocess.PIPE

    try:
        with subprocess.Popen(
            cmd,
            shell=shell,
            stdin=stdin,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            encoding="utf-8",
            close_fds=True,
        ) as subprocess_popen_obj:
            (out, err) = subprocess_popen_obj.communicate(process_input)
            return_code = subprocess_popen_obj.returncode
    except OSError:
        log_exc()
        logger.error("OS Error, command not found?  While running: %s", cmd)
        return "", COMMAND_NOT_FOUND

    logger.info("received on stdout: %s", out)
    logger.debug("received on stderr: %s", err)
    return out, return_code


def subprocess_call(
    cmd: Union[str, List[str]], shell: bool = False, process_input: Any = None
) -> int:
    """
    A simple subprocess call with no output capturing.

    :param cmd: The command to execute.
    :param shell: Whether to use a shell or not for the execution of the command.
    :param process_input: If there is any process_input needed for that command to stdin.
    :return: The return code of the process
    """
    _, return_code = subprocess_sp(cmd, shell=shell, process_input=process_input)
    return return_code
