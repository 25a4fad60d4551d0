"""
Removes the ISO9660 translation tables which were copied over from the source ISO.
"""

# SPDX-License-Identifier: GPL-2.0-or-later

import logging
from typing import TYPE_CHECKING

from kickiso.cexceptions import CopyError
from kickiso.utils import filesystem_helpers

if TYPE_CHECKING:
    from kickiso.api import KickIsoAPI

ARTIFACT_NAME = "TRANS.TBL"


class LayoutSanitizer:
    """
    Deletes every ``TRANS.TBL`` below the layout directory.
    """

    def __init__(self, api: "KickIsoAPI") -> None:
        self.config = api.config()
        self.logger = logging.getLogger()

    def run(self) -> int:
        """
        :raises CopyError: In case a file could not be removed.
        :return: The number of removed files, zero is fine.
        """
        matches = filesystem_helpers.find_files(self.config.layout_dir, ARTIFACT_NAME)
        for match in matches:
            try:
                # the parent came from the read-only ISO
                filesystem_helpers.make_writable(match.parent)
                filesystem_helpers.rmfile(match)
            except OSError as error:
                raise CopyError("Could not remove %s: %s", match, error) from error
        self.logger.info("Removed %d %s files", len(matches), ARTIFACT_NAME)
        return len(matches)
