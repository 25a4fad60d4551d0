"""
Tests for downloading and verifying the source ISO.
"""

import hashlib
import pathlib
from typing import Dict, List

import pytest
from pytest_mock import MockerFixture

from kickiso.actions.acquire import IsoAcquisition
from kickiso.api import KickIsoAPI
from kickiso.cexceptions import AcquisitionError

TRUSTED_KEY = "6341AB2753D78A78A7C27BB124C6A8A7F4A80EB5"
GOOD_ISO = b"good iso content"
CORRUPT_ISO = b"truncated"


def sha256(content: bytes) -> str:
    return hashlib.sha256(content).hexdigest()


def manifest(entries: Dict[str, bytes]) -> str:
    body = "".join(f"{sha256(content)}  {name}\n" for name, content in entries.items())
    return f"-----BEGIN PGP SIGNED MESSAGE-----\nHash: SHA256\n\n{body}-----BEGIN PGP SIGNATURE-----\n"


@pytest.fixture(name="mirror")
def fixture_mirror(mocker: MockerFixture, kickiso_api: KickIsoAPI):
    """
    Serves files from a dict of URL to list of bodies. Each request for a URL consumes the next body, the last one is
    repeated. Returns the dict and the list of requested URLs.
    """
    files: Dict[str, List[bytes]] = {}
    requested: List[str] = []

    def _download_file(url: str, destination: str, proxies=None):
        requested.append(url)
        bodies = files[url]
        body = bodies.pop(0) if len(bodies) > 1 else bodies[0]
        pathlib.Path(destination).write_bytes(body)

    mocker.patch.object(kickiso_api.download_manager, "download_file", side_effect=_download_file)
    return files, requested


@pytest.fixture(name="gpg")
def fixture_gpg(mocker: MockerFixture, kickiso_api: KickIsoAPI):
    """
    A gpg which accepts every manifest and copies it to the output file.
    """

    def _verify(signed_file: str, output_file: str, trusted):
        pathlib.Path(output_file).write_bytes(pathlib.Path(signed_file).read_bytes())
        return TRUSTED_KEY

    ensure_keys = mocker.patch.object(kickiso_api.gpg, "ensure_keys", return_value=set())
    verify = mocker.patch.object(kickiso_api.gpg, "verify_clearsigned", side_effect=_verify)
    return ensure_keys, verify


def iso_url(kickiso_api: KickIsoAPI) -> str:
    config = kickiso_api.config()
    return f"{config.mirror}/{config.iso}"


def checksum_url(kickiso_api: KickIsoAPI) -> str:
    config = kickiso_api.config()
    return f"{config.mirror}/{config.checksum}"


def test_acquire_downloads_missing_iso(kickiso_api: KickIsoAPI, mirror, gpg):
    # Arrange
    files, requested = mirror
    config = kickiso_api.config()
    files[iso_url(kickiso_api)] = [GOOD_ISO]
    files[checksum_url(kickiso_api)] = [manifest({config.iso: GOOD_ISO}).encode()]

    # Act
    result = IsoAcquisition(kickiso_api).run()

    # Assert
    assert result == config.iso_path
    assert pathlib.Path(result).read_bytes() == GOOD_ISO
    assert requested == [iso_url(kickiso_api), checksum_url(kickiso_api)]
    gpg[0].assert_called_once_with(frozenset([TRUSTED_KEY]))


def test_acquire_cached_iso_is_not_downloaded(kickiso_api: KickIsoAPI, mirror, gpg):
    # Arrange
    files, requested = mirror
    config = kickiso_api.config()
    pathlib.Path(config.cache_dir).mkdir(parents=True)
    pathlib.Path(config.iso_path).write_bytes(GOOD_ISO)
    files[checksum_url(kickiso_api)] = [manifest({config.iso: GOOD_ISO}).encode()]

    # Act
    IsoAcquisition(kickiso_api).run()
    IsoAcquisition(kickiso_api).run()

    # Assert
    assert requested == [checksum_url(kickiso_api), checksum_url(kickiso_api)]
    assert gpg[1].call_count == 2


def test_acquire_redownloads_once_on_mismatch(kickiso_api: KickIsoAPI, mirror, gpg):
    # Arrange
    files, requested = mirror
    config = kickiso_api.config()
    pathlib.Path(config.cache_dir).mkdir(parents=True)
    pathlib.Path(config.iso_path).write_bytes(CORRUPT_ISO)
    files[iso_url(kickiso_api)] = [GOOD_ISO]
    files[checksum_url(kickiso_api)] = [manifest({config.iso: GOOD_ISO}).encode()]

    # Act
    result = IsoAcquisition(kickiso_api).run()

    # Assert
    assert pathlib.Path(result).read_bytes() == GOOD_ISO
    assert requested == [checksum_url(kickiso_api), iso_url(kickiso_api)]


def test_acquire_second_mismatch_is_fatal(kickiso_api: KickIsoAPI, mirror, gpg):
    # Arrange
    files, requested = mirror
    config = kickiso_api.config()
    files[iso_url(kickiso_api)] = [CORRUPT_ISO]
    files[checksum_url(kickiso_api)] = [manifest({config.iso: GOOD_ISO}).encode()]

    # Act
    with pytest.raises(AcquisitionError) as excinfo:
        IsoAcquisition(kickiso_api).run()

    # Assert
    assert excinfo.value.exit_code == 3
    assert requested.count(iso_url(kickiso_api)) == 2


def test_acquire_bad_signature_is_fatal(kickiso_api: KickIsoAPI, mirror, gpg):
    # Arrange
    files, requested = mirror
    config = kickiso_api.config()
    files[iso_url(kickiso_api)] = [GOOD_ISO]
    files[checksum_url(kickiso_api)] = [manifest({config.iso: GOOD_ISO}).encode()]
    gpg[1].side_effect = None
    gpg[1].return_value = None

    # Act & Assert
    with pytest.raises(AcquisitionError):
        IsoAcquisition(kickiso_api).run()


def test_acquire_missing_keys_are_not_fatal(kickiso_api: KickIsoAPI, mirror, gpg):
    # Arrange
    files, _ = mirror
    config = kickiso_api.config()
    files[iso_url(kickiso_api)] = [GOOD_ISO]
    files[checksum_url(kickiso_api)] = [manifest({config.iso: GOOD_ISO}).encode()]
    gpg[0].return_value = {TRUSTED_KEY}

    # Act
    result = IsoAcquisition(kickiso_api).run()

    # Assert
    assert result == config.iso_path


def test_acquire_iso_not_in_manifest(kickiso_api: KickIsoAPI, mirror, gpg):
    # Arrange
    files, _ = mirror
    files[iso_url(kickiso_api)] = [GOOD_ISO]
    files[checksum_url(kickiso_api)] = [
        manifest({"CentOS-7-x86_64-DVD-2009.iso": GOOD_ISO}).encode()
    ]

    # Act & Assert
    with pytest.raises(AcquisitionError):
        IsoAcquisition(kickiso_api).run()


def test_acquire_base_name_lookup(kickiso_api: KickIsoAPI, mirror, gpg):
    # Arrange
    files, requested = mirror
    config = kickiso_api.config()
    files[iso_url(kickiso_api)] = [GOOD_ISO]
    files[checksum_url(kickiso_api)] = [
        manifest({"CentOS-7-x86_64-NetInstall-2009.img": GOOD_ISO}).encode()
    ]

    # Act
    result = IsoAcquisition(kickiso_api).run()

    # Assert
    assert result == config.iso_path
    assert requested.count(iso_url(kickiso_api)) == 1


def test_acquire_redownload_needs_exact_entry(kickiso_api: KickIsoAPI, mirror, gpg):
    # Arrange
    files, _ = mirror
    files[iso_url(kickiso_api)] = [CORRUPT_ISO, GOOD_ISO]
    files[checksum_url(kickiso_api)] = [
        manifest({"CentOS-7-x86_64-NetInstall-2009.img": GOOD_ISO}).encode()
    ]

    # Act & Assert
    with pytest.raises(AcquisitionError):
        IsoAcquisition(kickiso_api).run()


def test_acquire_download_failure(mocker: MockerFixture, kickiso_api: KickIsoAPI, gpg):
    # Arrange
    mocker.patch.object(
        kickiso_api.download_manager,
        "download_file",
        side_effect=AcquisitionError("Download of %s failed", "the ISO"),
    )

    # Act & Assert
    with pytest.raises(AcquisitionError):
        IsoAcquisition(kickiso_api).run()
    gpg[1].assert_not_called()


def test_acquire_unreadable_iso(mocker: MockerFixture, kickiso_api: KickIsoAPI, mirror, gpg):
    # Arrange
    files, _ = mirror
    config = kickiso_api.config()
    pathlib.Path(config.cache_dir).mkdir(parents=True)
    pathlib.Path(config.iso_path).write_bytes(GOOD_ISO)
    files[checksum_url(kickiso_api)] = [manifest({config.iso: GOOD_ISO}).encode()]
    mocker.patch(
        "kickiso.utils.checksums.hash_file",
        side_effect=OSError(5, "Input/output error"),
    )

    # Act
    with pytest.raises(AcquisitionError) as excinfo:
        IsoAcquisition(kickiso_api).run()

    # Assert
    assert excinfo.value.exit_code == 3
    assert "Input/output error" in str(excinfo.value)
