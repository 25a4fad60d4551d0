"""
Thin wrapper around the ``gpg`` binary for checking the signature of checksum manifests.
"""

# SPDX-License-Identifier: GPL-2.0-or-later

import logging
import re
from typing import FrozenSet, Iterable, List, Optional, Set

from kickiso import utils

logger = logging.getLogger()

VALIDSIG = re.compile(r"^\[GNUPG:\] VALIDSIG (?P<fields>.+)$", re.MULTILINE)


def normalize_fingerprint(fingerprint: str) -> str:
    """
    :param fingerprint: A fingerprint as printed by ``gpg --fingerprint``, e.g. with blanks between the blocks.
    :return: The fingerprint without whitespace in upper case.
    """
    return "".join(fingerprint.split()).upper()


class Gpg:
    """
    Runs gpg in batch mode, optionally against a dedicated home directory.
    """

    def __init__(self, homedir: str = "", keyserver: str = "") -> None:
        self.logger = logging.getLogger()
        self.homedir = homedir
        self.keyserver = keyserver

    def _cmd(self, *args: str) -> List[str]:
        cmd = ["gpg", "--batch", "--no-tty"]
        if self.homedir:
            cmd.extend(["--homedir", self.homedir])
        cmd.extend(args)
        return cmd

    def has_key(self, fingerprint: str) -> bool:
        """
        :param fingerprint: The fingerprint to look up in the local key store.
        :return: True if the public key is known locally.
        """
        return utils.subprocess_call(self._cmd("--list-keys", fingerprint)) == 0

    def recv_key(self, fingerprint: str) -> bool:
        """
        Import a key from the keyserver.

        :param fingerprint: The fingerprint of the key to import.
        :return: True if gpg reported success.
        """
        cmd = ["--recv-keys", fingerprint]
        if self.keyserver:
            cmd = ["--keyserver", self.keyserver] + cmd
        return utils.subprocess_call(self._cmd(*cmd)) == 0

    def ensure_keys(self, fingerprints: Iterable[str]) -> Set[str]:
        """
        Import every key which is not yet part of the local key store. A failed import is only logged, verification
        will fail later on if the manifest was signed with the missing key.

        :param fingerprints: The fingerprints of the trusted keys.
        :return: The fingerprints which are neither present nor could be imported.
        """
        missing = set()
        for fingerprint in sorted(fingerprints):
            if self.has_key(fingerprint):
                self.logger.debug("Key %s already present", fingerprint)
                continue
            self.logger.info("Importing key %s from %s", fingerprint, self.keyserver)
            if not self.recv_key(fingerprint):
                self.logger.warning("Could not import key %s", fingerprint)
                missing.add(fingerprint)
        return missing

    def verify_clearsigned(
        self, signed_file: str, output_file: str, trusted: FrozenSet[str]
    ) -> Optional[str]:
        """
        Check the signature of a clearsigned file and write the signed payload (without armor) to ``output_file``.

        :param signed_file: The clearsigned file.
        :param output_file: Where to put the verified payload. An existing file is overwritten.
        :param trusted: The fingerprints that are allowed to have signed the file.
        :return: The fingerprint of the trusted key which made the signature, or None if the signature is bad, missing
                 or was made by a key that is not trusted.
        """
        status, return_code = utils.subprocess_sp(
            self._cmd(
                "--status-fd",
                "1",
                "--yes",
                "--output",
                output_file,
                "--decrypt",
                signed_file,
            )
        )
        if return_code != 0:
            self.logger.error(
                'gpg could not verify "%s" (exit code %s)', signed_file, return_code
            )
            return None
        for match in VALIDSIG.finditer(status):
            fields = match.group("fields").split()
            # the signing (sub)key comes first, the primary key fingerprint last
            candidates = {normalize_fingerprint(fields[0])}
            if len(fields) >= 10:
                candidates.add(normalize_fingerprint(fields[-1]))
            signer = candidates & trusted
            if signer:
                return signer.pop()
            self.logger.error(
                'Signature of "%s" was made by untrusted key %s', signed_file, fields[0]
            )
        return None
