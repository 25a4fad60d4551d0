"""
Checksum manifests as published next to distribution ISOs, e.g. ``sha256sum.txt.asc`` or ``CHECKSUM``.
"""

# SPDX-License-Identifier: GPL-2.0-or-later

import hashlib
import logging
import os
import pathlib
import re
from typing import Dict, NamedTuple, Optional, Union

from kickiso.enums import HashAlgorithm

logger = logging.getLogger()

# "<hex>  <name>" as written by sha256sum, "*" marks binary mode
GNU_LINE = re.compile(r"^(?P<digest>[0-9a-fA-F]+) [ *](?P<name>.+)$")
# "SHA256 (<name>) = <hex>" as written by "sha256sum --tag"
BSD_LINE = re.compile(
    r"^(?P<algorithm>[A-Za-z0-9]+) \((?P<name>.+)\) = (?P<digest>[0-9a-fA-F]+)$"
)

DIGEST_LENGTHS = {
    40: HashAlgorithm.SHA1,
    64: HashAlgorithm.SHA256,
    128: HashAlgorithm.SHA512,
}


class ChecksumEntry(NamedTuple):  # pylint: disable=missing-class-docstring
    algorithm: HashAlgorithm
    digest: str


def hash_file(
    file_path: Union[str, "os.PathLike[str]"],
    algorithm: HashAlgorithm = HashAlgorithm.SHA256,
    buffer_size: int = 1024 * 1024,
) -> str:
    """
    This function is emulating the functionality of the sha256sum tool (or its siblings).

    :param file_path: The path to the file that should be hashed.
    :param algorithm: The digest algorithm.
    :param buffer_size: The buffer-size that should be used to hash the file.
    :return: The hex digest as sha256sum would print it.
    """
    file_hash = hashlib.new(algorithm.value)
    with open(file_path, "rb") as file_fd:
        while True:
            data = file_fd.read(buffer_size)
            if not data:
                break
            file_hash.update(data)
    return file_hash.hexdigest()


def parse_manifest(content: str) -> Dict[str, ChecksumEntry]:
    """
    Parse a checksum manifest. Lines that are neither GNU nor BSD style checksum lines (comments, blank lines, OpenPGP
    armor) are skipped.

    :param content: The text of the manifest.
    :return: A dict of file name to checksum entry. The first entry for a file name wins.
    """
    entries: Dict[str, ChecksumEntry] = {}
    for raw_line in content.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        entry = _parse_line(line)
        if entry is None:
            continue
        name, checksum = entry
        entries.setdefault(name, checksum)
    logger.debug("Manifest lists %d files", len(entries))
    return entries


def _parse_line(line: str) -> Optional[tuple]:
    match = BSD_LINE.match(line)
    if match:
        try:
            algorithm = HashAlgorithm.to_enum(match.group("algorithm"))
        except ValueError:
            logger.debug('Skipping unsupported digest in line "%s"', line)
            return None
        return match.group("name"), ChecksumEntry(
            algorithm, match.group("digest").lower()
        )
    match = GNU_LINE.match(line)
    if match:
        digest = match.group("digest").lower()
        algorithm = DIGEST_LENGTHS.get(len(digest))
        if algorithm is None:
            return None
        return match.group("name").strip(), ChecksumEntry(algorithm, digest)
    return None


def base_name(file_name: str) -> str:
    """
    :param file_name: A file name like ``CentOS-7-x86_64-NetInstall-2009.iso``.
    :return: The file name with its final extension stripped.
    """
    return os.path.splitext(pathlib.PurePath(file_name).name)[0]


def find_by_base_name(
    entries: Dict[str, ChecksumEntry], file_name: str
) -> Optional[ChecksumEntry]:
    """
    Look up the checksum for a file via its base name. An entry for exactly ``file_name`` is preferred over other
    files that share the base name.

    :param entries: The parsed manifest.
    :param file_name: The file to look up.
    :return: The matching entry or None.
    """
    if file_name in entries:
        return entries[file_name]
    wanted = base_name(file_name)
    for name, entry in entries.items():
        if base_name(name) == wanted:
            return entry
    return None


def find_by_file_name(
    entries: Dict[str, ChecksumEntry], file_name: str
) -> Optional[ChecksumEntry]:
    """
    :param entries: The parsed manifest.
    :param file_name: The exact file name, directories in the manifest are ignored.
    :return: The entry listed for exactly ``file_name`` or None.
    """
    for name, entry in entries.items():
        if pathlib.PurePath(name).name == file_name:
            return entry
    return None
