"""
Makes sure a cryptographically verified copy of the source ISO is in the local cache.

The checksum manifest is fetched on every run and its OpenPGP signature has to be made by one of the trusted keys. The
ISO itself is only downloaded if it is missing from the cache or its checksum does not match the manifest.
"""

# SPDX-License-Identifier: GPL-2.0-or-later

import logging
import os
from typing import TYPE_CHECKING, Dict

from kickiso.cexceptions import AcquisitionError, CX
from kickiso.download_manager import join_url
from kickiso.utils import checksums, filesystem_helpers

if TYPE_CHECKING:
    from kickiso.api import KickIsoAPI
    from kickiso.utils.checksums import ChecksumEntry


class IsoAcquisition:
    """
    Download, verify and cache the source ISO.
    """

    def __init__(self, api: "KickIsoAPI") -> None:
        """
        Constructor

        :param api: The API to resolve the configuration and helpers with.
        """
        self.api = api
        self.config = api.config()
        self.settings = api.settings()
        self.logger = logging.getLogger()

    @property
    def verified_manifest_path(self) -> str:  # pylint: disable=missing-function-docstring
        return f"{self.config.checksum_path}.verified"

    def prepare_cache(self):
        """
        Create the cache directory if needed.

        :raises AcquisitionError: In case the directory could not be created.
        """
        try:
            filesystem_helpers.mkdir(self.config.cache_dir)
        except CX as error:
            raise AcquisitionError("%s", error) from error

    def download_iso(self):
        """
        Download the ISO from the mirror, replacing any cached copy.
        """
        self.api.download_manager.download_file(
            join_url(self.config.mirror, self.config.iso), self.config.iso_path
        )

    def import_trusted_keys(self):
        """
        Import missing trusted keys into the gpg key store. This is best effort, see ``Gpg.ensure_keys()``.
        """
        missing = self.api.gpg.ensure_keys(self.settings.trusted_key_set)
        if missing:
            self.logger.warning(
                "Trusted keys not available: %s", ", ".join(sorted(missing))
            )

    def fetch_manifest(self) -> Dict[str, "ChecksumEntry"]:
        """
        Download the checksum manifest, check its signature and parse the signed part.

        :raises AcquisitionError: In case the download fails or the signature is not good and made by a trusted key.
        :return: The parsed manifest.
        """
        self.api.download_manager.download_file(
            join_url(self.config.mirror, self.config.checksum),
            self.config.checksum_path,
        )
        self.logger.info("Verifying signature of %s", self.config.checksum_path)
        signer = self.api.gpg.verify_clearsigned(
            self.config.checksum_path,
            self.verified_manifest_path,
            self.settings.trusted_key_set,
        )
        if signer is None:
            raise AcquisitionError(
                "Signature verification of %s failed", self.config.checksum_path
            )
        self.logger.info("Good signature from trusted key %s", signer)
        try:
            with open(self.verified_manifest_path, encoding="UTF-8") as manifest_fd:
                return checksums.parse_manifest(manifest_fd.read())
        except (OSError, UnicodeDecodeError) as error:
            raise AcquisitionError(
                "Could not read verified manifest %s: %s",
                self.verified_manifest_path,
                error,
            ) from error

    def matches(self, expected: "ChecksumEntry") -> bool:
        """
        :param expected: The manifest entry for the ISO.
        :raises AcquisitionError: In case the ISO could not be read.
        :return: True if the cached ISO has the expected digest.
        """
        try:
            actual = checksums.hash_file(self.config.iso_path, expected.algorithm)
        except OSError as error:
            raise AcquisitionError(
                "Could not hash %s: %s", self.config.iso_path, error
            ) from error
        self.logger.debug("Expected %s, got %s", expected.digest, actual)
        return actual == expected.digest

    def run(self) -> str:
        """
        Run the acquisition.

        :raises AcquisitionError: In case of any download, signature or checksum failure.
        :return: The path to the verified ISO.
        """
        self.logger.info("Acquiring %s", self.config.iso)
        self.prepare_cache()

        if os.path.isfile(self.config.iso_path):
            self.logger.info("Found %s in the cache", self.config.iso_path)
        else:
            self.download_iso()

        self.import_trusted_keys()
        manifest = self.fetch_manifest()

        expected = checksums.find_by_base_name(manifest, self.config.iso)
        if expected is None:
            raise AcquisitionError(
                "%s does not list a checksum for %s",
                self.config.checksum,
                checksums.base_name(self.config.iso),
            )
        if self.matches(expected):
            self.logger.info("Checksum of %s verified", self.config.iso)
            return self.config.iso_path

        self.logger.warning(
            "Checksum mismatch for %s, downloading it again", self.config.iso_path
        )
        self.download_iso()
        expected = checksums.find_by_file_name(manifest, self.config.iso)
        if expected is None:
            raise AcquisitionError(
                "%s does not list a checksum for %s",
                self.config.checksum,
                self.config.iso,
            )
        if not self.matches(expected):
            raise AcquisitionError(
                "Checksum of %s still does not match after downloading it again",
                self.config.iso_path,
            )
        self.logger.info("Checksum of %s verified", self.config.iso)
        return self.config.iso_path
