"""
Custom exceptions for kickiso
"""

# SPDX-License-Identifier: GPL-2.0-or-later

from typing import Any

from kickiso.enums import ExitCode


class KickIsoException(Exception):
    """
    This is the default kickiso exception where all other exceptions are inheriting from.
    """

    exit_code = ExitCode.FAILURE

    def __init__(self, value: Any, *args: Any):
        """
        Default constructor for the Exception.

        Bad example: ``KickIsoException("ISO %s not found" % iso_name)``

        Good example: ``KickIsoException("ISO %s not found", iso_name)``

        :param value: The string representation of the Exception. Do not glue strings and pass them as one. Instead pass
                      them as params and let the constructor of the Exception build the string like (same as it should
                      be done with logging calls). Example see above.
        :param args: Optional arguments which replace a ``%s`` in a Python string.
        """
        if args:
            self.value = value % args
        else:
            self.value = str(value)
        super().__init__(self.value)

    def __str__(self) -> str:
        """
        This is the string representation of the base kickiso Exception.

        :return: self.value as a plain string.
        """
        return self.value


class CX(KickIsoException):
    """
    This is a general exception which is raised when no more specific kind fits.
    """


class ConfigurationError(KickIsoException):
    """
    A required invocation parameter is missing or the settings file is invalid.
    """

    exit_code = ExitCode.CONFIGURATION


class AcquisitionError(KickIsoException):
    """
    Downloading or verifying the source ISO failed.
    """

    exit_code = ExitCode.ACQUISITION


class MountError(KickIsoException):
    """
    Mounting or unmounting the source ISO failed.
    """

    exit_code = ExitCode.MOUNT


class CopyError(KickIsoException):
    """
    Copying files into or removing files from the layout failed.
    """

    exit_code = ExitCode.COPY


class PackError(KickIsoException):
    """
    The ISO mastering tool or the media checksum implanter failed.
    """

    exit_code = ExitCode.PACK
