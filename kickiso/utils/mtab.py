"""
Read the mount table of the running system. kickiso needs it to find out whether a mount point is still occupied by a
previous, interrupted run.
"""

# SPDX-License-Identifier: GPL-2.0-or-later

import os
import re
from typing import List, Optional

MTAB = "/proc/self/mounts"

_OCTAL_ESCAPE = re.compile(r"\\([0-7]{3})")


def unescape(field: str) -> str:
    r"""
    The kernel escapes whitespace and backslashes inside mount table fields as octal sequences, e.g. ``\040`` for a
    space.

    :param field: The raw field from the mount table.
    :return: The field with all octal escapes resolved.
    """
    return _OCTAL_ESCAPE.sub(lambda match: chr(int(match.group(1), 8)), field)


class MntEntObj:
    """
    A single line of the mount table.
    """

    mnt_fsname = None  # name of mounted file system
    mnt_dir = None  # file system path prefix
    mnt_type = None  # mount type (see mntent.h)
    mnt_opts = None  # mount options (see mntent.h)
    mnt_freq = 0  # dump frequency in days
    mnt_passno = 0  # pass number on parallel fsck

    def __init__(self, input_data: Optional[str] = None):
        """
        This is an object which contains information about a mounted filesystem.

        :param input_data: This is a string which is separated internally by whitespace. If present it represents the
                      arguments: "mnt_fsname", "mnt_dir", "mnt_type", "mnt_opts", "mnt_freq" and "mnt_passno". The order
                      must be preserved, as well as the separation by whitespace.
        """
        if input_data and isinstance(input_data, str):
            (
                self.mnt_fsname,
                mnt_dir,
                self.mnt_type,
                self.mnt_opts,
                self.mnt_freq,
                self.mnt_passno,
            ) = input_data.split()
            self.mnt_dir = unescape(mnt_dir)

    def __str__(self):
        return f"{self.mnt_fsname} {self.mnt_dir} {self.mnt_type} {self.mnt_opts} {self.mnt_freq} {self.mnt_passno}"


def get_mtab(mtab: str = MTAB) -> List[MntEntObj]:
    """
    Get the list of mtab entries. The table is read on every call since a mount may appear or vanish between two
    stages.

    :param mtab: The location of the mount table. Argument can be omitted if the table is at its default location.
    :return: The list of mtab entries, empty lines are dropped.
    """
    with open(mtab, encoding="UTF-8") as mtab_fd:
        return [MntEntObj(line) for line in mtab_fd.read().split("\n") if line.strip()]


def is_mounted(path: str, mtab: str = MTAB) -> bool:
    """
    Check whether something is mounted at ``path``.

    :param path: The directory to look up. Symlinks are resolved before comparison.
    :param mtab: The location of the mount table.
    :return: True if at least one mount table entry uses ``path`` as its mount point.
    """
    wanted = os.path.realpath(path)
    return any(
        os.path.realpath(ent.mnt_dir) == wanted
        for ent in get_mtab(mtab)
        if ent.mnt_dir
    )
