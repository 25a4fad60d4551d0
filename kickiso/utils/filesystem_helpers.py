"""
Filesystem helpers used by the stages that build the ISO layout.
"""

# SPDX-License-Identifier: GPL-2.0-or-later

import errno
import logging
import os
import pathlib
import shutil
import stat
from typing import List, Union

from kickiso.cexceptions import CX
from kickiso.utils import log_exc

logger = logging.getLogger()

PathType = Union[str, "os.PathLike[str]"]


def make_writable(path: PathType):
    """
    Add the owner write bit to a file or directory. Content copied from an ISO9660 filesystem is read-only.

    :param path: The file or directory to change.
    """
    mode = os.lstat(path).st_mode
    if stat.S_ISLNK(mode):
        return
    if not mode & stat.S_IWUSR:
        os.chmod(path, stat.S_IMODE(mode) | stat.S_IWUSR)


def make_tree_writable(path: PathType):
    """
    Make every directory below ``path`` writable so its content can be deleted or replaced.

    :param path: The root of the tree.
    """
    make_writable(path)
    for dirpath, dirnames, _ in os.walk(path):
        for dirname in dirnames:
            make_writable(os.path.join(dirpath, dirname))


def copyfile(src: PathType, dst: PathType):
    """
    Copy a file from source to the destination. An existing destination is overwritten, even if it is read-only.

    :param src: The source file.
    :param dst: The destination file.
    :raises OSError: Raised in case ``src`` could not be read or ``dst`` could not be written.
    """
    dst_obj = pathlib.Path(dst)
    if not os.access(src, os.R_OK):
        raise OSError(errno.EACCES, f"Cannot read: {src}")
    if dst_obj.exists():
        make_writable(dst_obj)
    logger.info("copying: %s -> %s", src, dst)
    shutil.copy2(src, dst)


def copytree(src: PathType, dst: PathType):
    """
    Copy the content of a directory recursively into another directory. Permissions, timestamps and symlinks are
    preserved. Files that already exist in ``dst`` are replaced, other content of ``dst`` stays.

    :param src: The directory to copy the content from.
    :param dst: The directory to copy to. It is created if missing.
    :raises shutil.Error: Raised in case one or more files could not be copied.
    """
    logger.info("copying tree: %s -> %s", src, dst)
    if pathlib.Path(dst).exists():
        make_tree_writable(dst)
    shutil.copytree(src, dst, symlinks=True, dirs_exist_ok=True)


def mkdir(path: PathType, mode=0o755):
    """
    Create a directory and all missing parents.

    :param path: The path to create the directory at.
    :param mode: The mode to create the directory with.
    :raises CX: Raised in case creating the directory fails for another reason than it being there already.
    """
    try:
        pathlib.Path(path).mkdir(mode=mode, parents=True, exist_ok=True)
    except OSError as os_error:
        log_exc()
        raise CX("Error creating %s", path) from os_error


def rmtree(path: PathType):
    """
    Delete a complete directory or just a single file. A path that does not exist is fine.

    :param path: The directory or file to delete.
    :raises CX: Raised in case ``path`` could not be removed.
    """
    path_obj = pathlib.Path(path)
    try:
        if path_obj.is_symlink() or path_obj.is_file():
            rmfile(path)
            return
        if not path_obj.exists():
            return
        logger.info("removing: %s", path)
        make_tree_writable(path)
        shutil.rmtree(path)
    except OSError as ioe:
        log_exc()
        if ioe.errno != errno.ENOENT:
            raise CX("Error deleting %s", path) from ioe


def rmfile(path: PathType):
    """
    Delete a single file.

    :param path: The file to delete.
    :raises OSError: Raised in case the file exists but could not be removed.
    """
    try:
        pathlib.Path(path).unlink()
        logger.info('Successfully removed "%s"', path)
    except FileNotFoundError:
        pass


def find_files(path: PathType, name: str) -> List[pathlib.Path]:
    """
    Search a directory tree for regular files with a given name.

    :param path: The root of the search.
    :param name: The exact file name to look for.
    :return: The sorted list of matches.
    """
    return sorted(
        match
        for match in pathlib.Path(path).rglob(name)
        if match.is_file() and not match.is_symlink()
    )


def is_missing_or_empty(path: PathType) -> bool:
    """
    :param path: The directory to check.
    :return: True if ``path`` is missing, not a directory or a directory without any entries.
    """
    path_obj = pathlib.Path(path)
    if not path_obj.is_dir():
        return True
    return not any(path_obj.iterdir())
