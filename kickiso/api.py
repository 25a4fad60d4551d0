"""
kickiso API: the entry point for building a customized installation ISO. The command line is a thin layer above it.
"""

# SPDX-License-Identifier: GPL-2.0-or-later

import datetime
import logging
from typing import Optional

from kickiso.actions import acquire, extract, inject, pack, sanitize
from kickiso.download_manager import DownloadManager
from kickiso.settings import PipelineConfig, Settings
from kickiso.utils.gpg import Gpg


class KickIsoAPI:
    """
    Runs the stages of the ISO build. Each stage is available on its own, :meth:`build_iso` runs all of them in order
    and stops at the first failure.
    """

    def __init__(
        self,
        config: PipelineConfig,
        settings: Optional[Settings] = None,
        started: Optional[datetime.datetime] = None,
    ) -> None:
        """
        Constructor

        :param config: The parameters of this run.
        :param settings: The app-wide settings. Defaults apply if omitted.
        :param started: The start time of the run, it ends up in the ISO metadata. Defaults to now.
        """
        self.logger = logging.getLogger()
        self._config = config
        self._settings = settings if settings is not None else Settings()
        self.started = started if started is not None else datetime.datetime.now()
        self.download_manager = DownloadManager(self._settings)
        self.gpg = Gpg(
            homedir=self._settings.gpg_homedir, keyserver=self._settings.keyserver
        )

    def config(self) -> PipelineConfig:
        """
        :return: The parameters of this run.
        """
        return self._config

    def settings(self) -> Settings:
        """
        :return: The app-wide settings.
        """
        return self._settings

    # ==========================================================================

    def acquire_iso(self) -> str:
        """
        Make sure a verified copy of the source ISO is in the cache.

        :return: The path of the verified ISO.
        """
        return acquire.IsoAcquisition(self).run()

    def extract_layout(self, iso_path: str):
        """
        Recreate the layout directory from the content of the ISO.

        :param iso_path: The verified ISO.
        """
        extract.LayoutExtractor(self).run(iso_path)

    def inject_content(self):
        """
        Put guest tools, kickstart and boot menu into the layout.
        """
        inject.ContentInjector(self).run()

    def sanitize_layout(self) -> int:
        """
        Remove ISO9660 translation tables from the layout.

        :return: The number of removed files.
        """
        return sanitize.LayoutSanitizer(self).run()

    def pack_iso(self) -> str:
        """
        Master the layout into the output ISO.

        :return: The absolute path of the new ISO.
        """
        return pack.IsoPacker(self).run()

    # ==========================================================================

    def build_iso(self) -> str:
        """
        Run the whole pipeline.

        :return: The absolute path of the new ISO.
        """
        self.logger.info("Building %s from %s", self._config.output, self._config.iso)
        iso_path = self.acquire_iso()
        self.extract_layout(iso_path)
        self.inject_content()
        self.sanitize_layout()
        output = self.pack_iso()
        self.logger.info("ISO build complete")
        self.logger.info("The output file is: %s", output)
        return output
