"""
Overlays the customizations onto the layout: guest tools, the kickstart file and the boot menu.
"""

# SPDX-License-Identifier: GPL-2.0-or-later

import logging
import os
import pathlib
import shutil
from typing import TYPE_CHECKING

from kickiso import utils
from kickiso.cexceptions import CopyError
from kickiso.utils import filesystem_helpers

if TYPE_CHECKING:
    from kickiso.api import KickIsoAPI

BOOT_LOADER_DIR = "isolinux"
BOOT_MENU_NAME = "isolinux.cfg"


class ContentInjector:
    """
    Copies the payloads into the layout directory. Every failure is fatal.
    """

    def __init__(self, api: "KickIsoAPI") -> None:
        """
        Constructor

        :param api: The API to resolve the configuration and settings with.
        """
        self.config = api.config()
        self.settings = api.settings()
        self.logger = logging.getLogger()

    def fetch_guest_tools(self) -> pathlib.Path:
        """
        Initialize the git submodule with the guest tools unless it is checked out already.

        :raises CopyError: In case git fails or the directory is still empty afterwards.
        :return: The guest tools directory.
        """
        guest_tools = self.settings.guest_tools_path
        if not filesystem_helpers.is_missing_or_empty(guest_tools):
            return guest_tools

        repo = pathlib.Path(self.settings.guest_tools_repo)
        submodule = os.path.relpath(guest_tools, repo)
        self.logger.info("Fetching guest tools submodule %s", submodule)
        return_code = utils.subprocess_call(
            ["git", "-C", str(repo), "submodule", "update", "--init", "--", submodule]
        )
        if return_code != 0:
            raise CopyError(
                "git submodule update for %s failed (exit code %s)",
                submodule,
                return_code,
            )
        if filesystem_helpers.is_missing_or_empty(guest_tools):
            raise CopyError("Guest tools directory %s is empty", guest_tools)
        return guest_tools

    def inject_guest_tools(self):
        """
        Copy the guest tools directory into the root of the layout.
        """
        guest_tools = self.fetch_guest_tools()
        target = pathlib.Path(self.config.layout_dir) / guest_tools.resolve().name
        try:
            filesystem_helpers.copytree(guest_tools, target)
        except (shutil.Error, OSError) as error:
            raise CopyError(
                "Copying guest tools %s failed: %s", guest_tools, error
            ) from error

    def inject_kickstart(self):
        """
        Copy the kickstart file into the root of the layout.
        """
        kickstart = self.settings.kickstart_path
        self._copy(kickstart, pathlib.Path(self.config.layout_dir) / kickstart.name)

    def inject_boot_menu(self):
        """
        Replace the isolinux configuration of the layout.
        """
        boot_dir = pathlib.Path(self.config.layout_dir) / BOOT_LOADER_DIR
        if not boot_dir.is_dir():
            raise CopyError("The layout has no %s directory", BOOT_LOADER_DIR)
        filesystem_helpers.make_writable(boot_dir)
        self._copy(self.settings.boot_menu_path, boot_dir / BOOT_MENU_NAME)

    def _copy(self, src: pathlib.Path, dst: pathlib.Path):
        if not src.is_file():
            raise CopyError("%s does not exist or is not a file", src)
        try:
            filesystem_helpers.copyfile(src, dst)
        except OSError as error:
            raise CopyError("Copying %s to %s failed: %s", src, dst, error) from error

    def run(self):
        """
        Apply all overlays.
        """
        self.logger.info("Injecting content into %s", self.config.layout_dir)
        self.inject_guest_tools()
        self.inject_kickstart()
        self.inject_boot_menu()
