"""
Runs the whole pipeline against a fake mirror, fake gpg, fake mounts and fake mastering tools.
"""

import hashlib
import pathlib

import pytest
from pytest_mock import MockerFixture

from kickiso.api import KickIsoAPI
from kickiso.cexceptions import AcquisitionError, MountError

ISO_CONTENT = b"netinstall iso"


@pytest.fixture(name="pipeline")
def fixture_pipeline(mocker: MockerFixture, kickiso_api: KickIsoAPI, create_iso_tree, fake_mount):
    config = kickiso_api.config()
    registry, calls, _ = fake_mount
    registry[config.iso_path] = create_iso_tree()
    digest = hashlib.sha256(ISO_CONTENT).hexdigest()
    bodies = {
        f"{config.mirror}/{config.iso}": ISO_CONTENT,
        f"{config.mirror}/{config.checksum}": f"{digest}  {config.iso}\n".encode(),
    }

    def _download_file(url: str, destination: str, proxies=None):
        pathlib.Path(destination).write_bytes(bodies[url])

    def _verify(signed_file: str, output_file: str, trusted):
        pathlib.Path(output_file).write_bytes(pathlib.Path(signed_file).read_bytes())
        return next(iter(trusted))

    mocker.patch.object(kickiso_api.download_manager, "download_file", side_effect=_download_file)
    mocker.patch.object(kickiso_api.gpg, "ensure_keys", return_value=set())
    mocker.patch.object(kickiso_api.gpg, "verify_clearsigned", side_effect=_verify)
    mocker.patch("kickiso.utils.command_existing", return_value=True)
    tools = mocker.patch("kickiso.utils.subprocess_call", return_value=0)
    return calls, tools


def test_build_iso(kickiso_api: KickIsoAPI, pipeline, resources: pathlib.Path):
    # Arrange
    mounts, tools = pipeline
    config = kickiso_api.config()
    layout = pathlib.Path(config.layout_dir)

    # Act
    result = kickiso_api.build_iso()

    # Assert
    assert result == config.output
    assert list(layout.rglob("TRANS.TBL")) == []
    assert (layout / "ks.cfg").exists()
    assert (layout / "guest-tools" / "install.sh").exists()
    assert (layout / "isolinux" / "isolinux.cfg").read_text(encoding="UTF-8") == (
        resources / "isolinux.cfg"
    ).read_text(encoding="UTF-8")
    assert [call[0] for call in mounts] == ["mount", "umount"]
    assert [call.args[0][0] for call in tools.call_args_list] == ["mkisofs", "implantisomd5"]


def test_build_iso_stops_at_first_failure(mocker: MockerFixture, kickiso_api: KickIsoAPI, pipeline):
    # Arrange
    mounts, tools = pipeline
    mocker.patch.object(
        kickiso_api.gpg, "verify_clearsigned", return_value=None, side_effect=None
    )

    # Act
    with pytest.raises(AcquisitionError):
        kickiso_api.build_iso()

    # Assert
    assert mounts == []
    tools.assert_not_called()
    assert not pathlib.Path(kickiso_api.config().layout_dir).exists()


def test_build_iso_mount_failure(mocker: MockerFixture, kickiso_api: KickIsoAPI, pipeline):
    # Arrange
    _, tools = pipeline
    mocker.patch("kickiso.actions.extract.mount_iso", side_effect=MountError("mount failed"))

    # Act & Assert
    with pytest.raises(MountError):
        kickiso_api.build_iso()
    tools.assert_not_called()


def test_api_defaults(pipeline_config):
    # Arrange

    # Act
    api = KickIsoAPI(pipeline_config)

    # Assert
    assert api.config() is pipeline_config
    assert api.settings().volume_label == "CentOS 7 x86_64"
    assert api.started is not None
    assert api.gpg.keyserver == "hkps://keyserver.ubuntu.com"
