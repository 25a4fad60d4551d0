"""
Masters the finished layout into a bootable ISO and implants the media check checksum.
"""

# SPDX-License-Identifier: GPL-2.0-or-later

import logging
import os
from typing import TYPE_CHECKING, List

from kickiso import utils
from kickiso.cexceptions import PackError

if TYPE_CHECKING:
    from kickiso.api import KickIsoAPI

BOOT_IMAGE = "isolinux/isolinux.bin"
BOOT_CATALOG = "isolinux/boot.cat"
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


class IsoPacker:
    """
    Runs mkisofs (or genisoimage) inside the layout directory, followed by implantisomd5.
    """

    def __init__(self, api: "KickIsoAPI") -> None:
        """
        Constructor

        :param api: The API to resolve the configuration, settings and start time with.
        """
        self.config = api.config()
        self.settings = api.settings()
        self.started = api.started
        self.logger = logging.getLogger()

    @property
    def output_path(self) -> str:
        """
        The output ISO. A relative name is relative to the directory kickiso was started in, not to the layout.
        """
        return os.path.abspath(self.config.output)

    @property
    def volume_description(self) -> str:  # pylint: disable=missing-function-docstring
        return f"{self.settings.volume_label} {self.started.strftime(TIMESTAMP_FORMAT)}"

    def mkisofs_cmd(self, output: str) -> List[str]:
        """
        Build the mastering command. It has to be run with the layout directory as working directory.

        :param output: The absolute path of the ISO to write.
        """
        return [
            self.settings.mkisofs,
            "-o",
            output,
            "-b",
            BOOT_IMAGE,
            "-c",
            BOOT_CATALOG,
            "-no-emul-boot",
            "-boot-load-size",
            "4",
            "-boot-info-table",
            "-R",
            "-J",
            "-V",
            self.settings.volume_label,
            "-A",
            self.volume_description,
            "-m",
            "lost+found",
            ".",
        ]

    def run(self) -> str:
        """
        Build the ISO.

        :raises PackError: In case the layout is missing or one of the tools is missing or fails.
        :return: The absolute path of the ISO.
        """
        output = self.output_path
        mkisofs = self.settings.mkisofs
        implantisomd5 = self.settings.implantisomd5_command
        for command in (mkisofs, implantisomd5):
            if not utils.command_existing(command):
                raise PackError("%s not found, please install it", command)

        if not os.path.isdir(self.config.layout_dir):
            raise PackError("Layout directory %s does not exist", self.config.layout_dir)

        self.logger.info("Packing %s into %s", self.config.layout_dir, output)
        with utils.pushd(self.config.layout_dir):
            return_code = utils.subprocess_call(self.mkisofs_cmd(output))
            if return_code != 0:
                raise PackError("%s failed with exit code %s", mkisofs, return_code)
            return_code = utils.subprocess_call([implantisomd5, output])
            if return_code != 0:
                raise PackError(
                    "%s failed with exit code %s", implantisomd5, return_code
                )
        return output
