"""
kickiso app-wide settings and the per-run pipeline configuration
"""

# SPDX-License-Identifier: GPL-2.0-or-later

import logging
import os
import pathlib
from typing import Any, Dict, FrozenSet, List, NamedTuple, Optional

import yaml
from schema import Optional as SchemaOptional  # type: ignore
from schema import Regex, Schema, SchemaError  # type: ignore

from kickiso import utils
from kickiso.cexceptions import ConfigurationError
from kickiso.utils.gpg import normalize_fingerprint

logger = logging.getLogger()

DEFAULT_SETTINGS_FILE = "/etc/kickiso/settings.yaml"

# CentOS 7 signing key
CENTOS_7_KEY = "6341 AB27 53D7 8A78 A7C2  7BB1 24C6 A8A7 F4A8 0EB5"

FINGERPRINT = Regex(r"^(?:[0-9A-Fa-f]\s*){40}$")

schema = Schema(
    {
        SchemaOptional("keyserver", default="hkps://keyserver.ubuntu.com"): str,
        SchemaOptional("trusted_keys", default=lambda: [CENTOS_7_KEY]): [FINGERPRINT],
        SchemaOptional("gpg_homedir", default=""): str,
        SchemaOptional("download_timeout", default=600): int,
        SchemaOptional("proxy_url_ext", default=dict): {SchemaOptional(str): str},
        SchemaOptional("kickstart_file", default="ks.cfg"): str,
        SchemaOptional("boot_menu_file", default="isolinux.cfg"): str,
        SchemaOptional("guest_tools_dir", default="guest-tools"): str,
        SchemaOptional("guest_tools_repo", default="."): str,
        SchemaOptional("volume_label", default="CentOS 7 x86_64"): str,
        SchemaOptional("mkisofs_command", default=""): str,
        SchemaOptional("implantisomd5_command", default="implantisomd5"): str,
    },
    ignore_extra_keys=False,
)


class Settings:
    """
    This class contains all app-wide settings of kickiso. The values come from the optional settings file, everything
    not mentioned there keeps its default.
    """

    def __init__(self) -> None:
        """
        Constructor.
        """
        self.__dict__.update(validate_settings({}))

    def from_dict(self, new_values: Dict[str, Any]) -> "Settings":
        """
        Load the values of a dictionary into this object. The result is validated as a whole.

        :param new_values: The dictionary with settings to replace.
        :raises ConfigurationError: In case the resulting settings would be invalid.
        :return: Returns the settings instance this method was called from.
        """
        merged = dict(self.__dict__)
        merged.update(new_values)
        try:
            self.__dict__.update(validate_settings(merged))
        except SchemaError as error:
            raise ConfigurationError("Invalid settings: %s", error) from error
        return self

    @property
    def trusted_key_set(self) -> FrozenSet[str]:
        """
        The fingerprints of the keys the checksum manifest may be signed with.
        """
        return frozenset(normalize_fingerprint(key) for key in self.trusted_keys)

    @property
    def mkisofs(self) -> str:
        """
        The ISO mastering binary. If none is configured it is picked based on the running distribution.
        """
        return self.mkisofs_command or utils.default_mkisofs_command()

    def resolve_resource(self, path: str) -> pathlib.Path:
        """
        Resolve a path of an overlay source. Relative paths are relative to ``guest_tools_repo``.

        :param path: The path as given in the settings or on the command line.
        """
        resource = pathlib.Path(path)
        if resource.is_absolute():
            return resource
        return pathlib.Path(self.guest_tools_repo) / resource

    @property
    def kickstart_path(self) -> pathlib.Path:  # pylint: disable=missing-function-docstring
        return self.resolve_resource(self.kickstart_file)

    @property
    def boot_menu_path(self) -> pathlib.Path:  # pylint: disable=missing-function-docstring
        return self.resolve_resource(self.boot_menu_file)

    @property
    def guest_tools_path(self) -> pathlib.Path:  # pylint: disable=missing-function-docstring
        return self.resolve_resource(self.guest_tools_dir)


def validate_settings(settings_content: Dict[str, Any]) -> Dict[str, Any]:
    """
    This function performs logical validation of our loaded YAML files.
    This function will:
    - Perform type validation on all values of all keys.
    - Provide defaults for optional settings.

    :param settings_content: The dictionary content from the YAML file.
    :raises SchemaError: In case the data given is invalid.
    :return: The settings which can be safely used.
    """
    return schema.validate(settings_content)


def read_yaml_file(filepath: str = DEFAULT_SETTINGS_FILE) -> Dict[str, Any]:
    """
    Reads settings files from ``filepath`` and saves the content in a dictionary.

    :param filepath: Settings file path, defaults to "/etc/kickiso/settings.yaml"
    :raises FileNotFoundError: In case file does not exist or is a directory.
    :raises yaml.YAMLError: In case the file is not a valid YAML file.
    :return: The aggregated dict of all settings. An empty file results in an empty dict.
    """
    if not os.path.isfile(filepath):
        raise FileNotFoundError(
            f'Given path "{filepath}" does not exist or is a directory.'
        )
    try:
        with open(filepath, encoding="UTF-8") as main_settingsfile:
            filecontent = yaml.safe_load(main_settingsfile.read())
    except yaml.YAMLError as error:
        raise yaml.YAMLError(f'"{filepath}" is not a valid YAML file') from error
    return filecontent or {}


def read_settings_file(filepath: Optional[str] = None) -> Settings:
    """
    Build the settings object. Without an explicit path the default settings file is used if it exists, otherwise the
    built-in defaults apply. An explicitly given file has to exist.

    :param filepath: The path to the settings file.
    :raises ConfigurationError: In case the file is missing, not valid YAML or does not match the schema.
    :return: The validated settings.
    """
    settings = Settings()
    if filepath is None:
        if not os.path.isfile(DEFAULT_SETTINGS_FILE):
            logger.debug("No settings file found, using defaults")
            return settings
        filepath = DEFAULT_SETTINGS_FILE

    try:
        filecontent = read_yaml_file(filepath)
    except (FileNotFoundError, yaml.YAMLError) as error:
        raise ConfigurationError("%s", error) from error
    if not isinstance(filecontent, dict):
        raise ConfigurationError('"%s" does not contain a mapping', filepath)
    return settings.from_dict(filecontent)


class PipelineConfig(NamedTuple):
    """
    The parameters of a single run. Built once from the command line and never changed afterwards.
    """

    mirror: str
    iso: str
    checksum: str
    cache_dir: str
    mount_point: str
    layout_dir: str
    output: str

    @property
    def iso_path(self) -> str:  # pylint: disable=missing-function-docstring
        return os.path.join(self.cache_dir, self.iso)

    @property
    def checksum_path(self) -> str:  # pylint: disable=missing-function-docstring
        return os.path.join(self.cache_dir, self.checksum)


# parameter name, message if missing; checked in this order
REQUIRED_PARAMETERS: List[tuple] = [
    ("mirror", "missing mirror url"),
    ("iso", "missing iso name"),
    ("checksum", "missing checksum file name"),
    ("cache_dir", "missing cache dir"),
    ("mount_point", "missing mount point"),
    ("layout_dir", "missing layout dir"),
    ("output", "missing output file name"),
]

DIRECTORY_PARAMETERS = ("mirror", "cache_dir", "mount_point", "layout_dir")


def strip_trailing_separator(value: str) -> str:
    """
    :param value: A directory or URL.
    :return: ``value`` without trailing slashes. The root directory stays as it is.
    """
    stripped = value.rstrip("/")
    return stripped or value


def resolve_pipeline_config(**parameters: Optional[str]) -> PipelineConfig:
    """
    Validate the invocation parameters and build the pipeline configuration. Nothing is touched on disk.

    :param parameters: The values of all fields of :class:`PipelineConfig`.
    :raises ConfigurationError: Naming the first parameter which is missing or empty.
    :return: The immutable configuration.
    """
    values: Dict[str, str] = {}
    for name, message in REQUIRED_PARAMETERS:
        value = parameters.get(name)
        if value is None or not value.strip():
            raise ConfigurationError(message)
        if name in DIRECTORY_PARAMETERS:
            value = strip_trailing_separator(value)
        values[name] = value

    for name in ("cache_dir", "mount_point", "layout_dir"):
        if not os.path.isabs(values[name]):
            logger.warning(
                '"%s" should be an absolute path but is "%s"', name, values[name]
            )
    return PipelineConfig(**values)
