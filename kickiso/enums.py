"""
This module is responsible for containing all enums we use in kickiso. It should not be dependent upon any other module
except the Python standard library.
"""

# SPDX-License-Identifier: GPL-2.0-or-later

import enum
from typing import TypeVar, Union

CONVERTABLEENUM = TypeVar("CONVERTABLEENUM", bound="ConvertableEnum")


class ConvertableEnum(enum.Enum):
    """
    Abstract class to convert the enum via our convert method.
    """

    @classmethod
    def to_enum(cls, value: Union[str, CONVERTABLEENUM]) -> CONVERTABLEENUM:
        """
        This method converts the chosen str to the corresponding enum type.

        :param value: str which contains the to be converted value.
        :returns: The enum value.
        :raises TypeError: In case value was not of type str.
        :raises ValueError: In case value was not in the range of valid values.
        """
        try:
            if isinstance(value, str):
                return cls[value.upper()]  # type: ignore
            if isinstance(value, cls):
                return value  # type: ignore
            raise TypeError(f"{value} must be a str or Enum")
        except KeyError:
            raise ValueError(f"{value} must be one of {list(cls)}") from KeyError


class ExitCode(enum.IntEnum):
    """
    Process exit status of the ``kickiso`` command. Every failure kind has its own code so wrappers can tell them apart.
    """

    OK = 0
    FAILURE = 1
    CONFIGURATION = 2
    ACQUISITION = 3
    MOUNT = 4
    COPY = 5
    PACK = 6
    INTERRUPTED = 130


class LogLevel(ConvertableEnum):
    """
    The log levels accepted by ``--log-level``.
    """

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class HashAlgorithm(ConvertableEnum):
    """
    Digest algorithms which may appear in a checksum manifest. The value is the name ``hashlib`` knows them by.
    """

    SHA1 = "sha1"
    SHA256 = "sha256"
    SHA512 = "sha512"
