"""
Fixtures that are shared between all tests inside the testsuite.
"""

import datetime
import pathlib
import shutil
from contextlib import contextmanager
from typing import Callable, Dict

import pytest
from pytest_mock import MockerFixture

from kickiso.api import KickIsoAPI
from kickiso.settings import PipelineConfig, Settings


@contextmanager
def does_not_raise():
    """
    Fixture that represents a context manager that will expect that no raise occurs.
    """
    yield


def write_tree(root: pathlib.Path, files: Dict[str, str]) -> pathlib.Path:
    """
    Create the files in ``files`` (relative path to content) below ``root``.
    """
    for relative_path, content in files.items():
        path = root / relative_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="UTF-8")
    return root


@pytest.fixture(name="pipeline_config", scope="function")
def fixture_pipeline_config(tmp_path: pathlib.Path) -> PipelineConfig:
    """
    A pipeline configuration with all directories inside the folder of the current test.
    """
    return PipelineConfig(
        mirror="http://mirror.example.com/centos/7/isos/x86_64",
        iso="CentOS-7-x86_64-NetInstall-2009.iso",
        checksum="sha256sum.txt.asc",
        cache_dir=str(tmp_path / "cache"),
        mount_point=str(tmp_path / "mnt"),
        layout_dir=str(tmp_path / "layout"),
        output=str(tmp_path / "out" / "custom.iso"),
    )


@pytest.fixture(name="resources", scope="function")
def fixture_resources(tmp_path: pathlib.Path) -> pathlib.Path:
    """
    A repository checkout with the overlay sources: guest tools, kickstart and boot menu.
    """
    return write_tree(
        tmp_path / "repo",
        {
            "guest-tools/install.sh": "#!/bin/sh\necho installing guest tools\n",
            "guest-tools/rpms/open-vm-tools.rpm": "rpm",
            "ks.cfg": "install\ncdrom\nreboot\n",
            "isolinux.cfg": "default ks\nlabel ks\n  append inst.ks=cdrom:/ks.cfg\n",
        },
    )


@pytest.fixture(name="settings", scope="function")
def fixture_settings(resources: pathlib.Path) -> Settings:
    """
    Settings pointing at the overlay sources of the current test.
    """
    return Settings().from_dict(
        {
            "guest_tools_repo": str(resources),
            "mkisofs_command": "mkisofs",
            "gpg_homedir": str(resources / "gnupg"),
        }
    )


@pytest.fixture(name="kickiso_api", scope="function")
def fixture_kickiso_api(pipeline_config: PipelineConfig, settings: Settings) -> KickIsoAPI:
    """
    Fixture that represents the kickiso API for a single test.
    """
    return KickIsoAPI(
        pipeline_config, settings, started=datetime.datetime(2024, 5, 1, 12, 30, 0)
    )


@pytest.fixture(name="create_iso_tree", scope="function")
def fixture_create_iso_tree(tmp_path: pathlib.Path) -> Callable[..., pathlib.Path]:
    """
    Provides a method to create a directory that stands in for the content of a mounted ISO.
    """

    def _create_iso_tree(name: str = "iso", extra_files: Dict[str, str] = None) -> pathlib.Path:
        files = {
            ".discinfo": "1603827450.000000\nCentOS 7\nx86_64\n",
            "TRANS.TBL": "F .discinfo ;1 .discinfo\n",
            "isolinux/isolinux.bin": "bin",
            "isolinux/isolinux.cfg": "default vesamenu.c32\n",
            "isolinux/TRANS.TBL": "F isolinux.cfg ;1 isolinux.cfg\n",
            "images/pxeboot/vmlinuz": "kernel",
            "images/pxeboot/TRANS.TBL": "F vmlinuz ;1 vmlinuz\n",
        }
        files.update(extra_files or {})
        return write_tree(tmp_path / name, files)

    return _create_iso_tree


@pytest.fixture(name="fake_mount", scope="function")
def fixture_fake_mount(mocker: MockerFixture):
    """
    Replaces loop mounting. "Mounting" an ISO copies the directory registered for it into the mount point, unmounting
    empties the mount point again. Returns the registry of ISO path to content directory and the recorded calls.
    """
    registry: Dict[str, pathlib.Path] = {}
    calls = []
    mounted = set()

    def _mount(iso_path: str, mount_point: str):
        calls.append(("mount", iso_path, mount_point))
        shutil.copytree(registry[iso_path], mount_point, dirs_exist_ok=True)
        mounted.add(mount_point)

    def _unmount(mount_point: str):
        calls.append(("umount", mount_point))
        for child in pathlib.Path(mount_point).iterdir():
            if child.is_dir():
                shutil.rmtree(child)
            else:
                child.unlink()
        mounted.discard(mount_point)

    mocker.patch("kickiso.actions.extract.mount_iso", side_effect=_mount)
    mocker.patch("kickiso.actions.extract.unmount", side_effect=_unmount)
    mocker.patch(
        "kickiso.utils.mtab.is_mounted", side_effect=lambda path: path in mounted
    )
    return registry, calls, mounted
