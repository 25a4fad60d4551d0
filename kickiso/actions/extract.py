"""
Turns the verified ISO into the layout directory by loop mounting it and copying its content.
"""

# SPDX-License-Identifier: GPL-2.0-or-later

import contextlib
import logging
import shutil
from typing import TYPE_CHECKING, Iterator

from kickiso import utils
from kickiso.cexceptions import CX, CopyError, MountError
from kickiso.utils import filesystem_helpers, mtab

if TYPE_CHECKING:
    from kickiso.api import KickIsoAPI

logger = logging.getLogger()


def mount_iso(iso_path: str, mount_point: str):
    """
    Loop mount an ISO read-only.

    :raises MountError: In case mount fails.
    """
    return_code = utils.subprocess_call(
        ["mount", "-o", "loop,ro", iso_path, mount_point]
    )
    if return_code != 0:
        raise MountError(
            "Could not mount %s at %s (exit code %s)", iso_path, mount_point, return_code
        )


def unmount(mount_point: str):
    """
    :raises MountError: In case umount fails.
    """
    return_code = utils.subprocess_call(["umount", mount_point])
    if return_code != 0:
        raise MountError(
            "Could not unmount %s (exit code %s)", mount_point, return_code
        )


@contextlib.contextmanager
def loop_mount(iso_path: str, mount_point: str) -> Iterator[str]:
    """
    Keep an ISO mounted for the duration of the ``with`` block. It is unmounted on every way out of the block. If the
    block raised, a failing unmount is logged and the original exception wins.

    :param iso_path: The ISO to mount.
    :param mount_point: The directory to mount at.
    :return: The mount point.
    """
    mount_iso(iso_path, mount_point)
    try:
        yield mount_point
    except BaseException:
        try:
            unmount(mount_point)
        except MountError as error:
            logger.error("%s", error)
        raise
    unmount(mount_point)


class LayoutExtractor:
    """
    Rebuilds the layout directory from scratch on every run.
    """

    def __init__(self, api: "KickIsoAPI") -> None:
        """
        Constructor

        :param api: The API to resolve the configuration with.
        """
        self.config = api.config()
        self.logger = logging.getLogger()

    def prepare_layout_dir(self):
        """
        Remove the layout directory of the previous run and create an empty one.

        :raises CopyError: In case the directory could not be removed or created.
        """
        self.logger.info('Deleting and recreating the layout dir at "%s"', self.config.layout_dir)
        try:
            filesystem_helpers.rmtree(self.config.layout_dir)
            filesystem_helpers.mkdir(self.config.layout_dir)
        except CX as error:
            raise CopyError("%s", error) from error

    def prepare_mount_point(self):
        """
        Release a mount left over by an interrupted run and make sure the mount point exists.

        :raises MountError: In case the stale mount could not be released.
        :raises CopyError: In case the mount point could not be created.
        """
        mount_point = self.config.mount_point
        if mtab.is_mounted(mount_point):
            self.logger.warning("%s is still mounted, unmounting it", mount_point)
            unmount(mount_point)
        try:
            filesystem_helpers.mkdir(mount_point)
        except CX as error:
            raise CopyError("%s", error) from error

    def copy_content(self, source: str):
        """
        Copy everything below ``source`` into the layout directory.

        :raises CopyError: In case any file could not be copied.
        """
        self.logger.info("Copying ISO content to %s", self.config.layout_dir)
        try:
            filesystem_helpers.copytree(source, self.config.layout_dir)
        except (shutil.Error, OSError) as error:
            raise CopyError(
                "Copying %s to %s failed: %s", source, self.config.layout_dir, error
            ) from error

    def run(self, iso_path: str):
        """
        Extract the ISO.

        :param iso_path: The verified ISO.
        """
        self.logger.info("Extracting %s", iso_path)
        self.prepare_layout_dir()
        self.prepare_mount_point()
        with loop_mount(iso_path, self.config.mount_point) as mounted:
            self.copy_content(mounted)
        self.logger.info("Layout ready at %s", self.config.layout_dir)
