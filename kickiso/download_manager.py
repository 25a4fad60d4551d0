"""
kickiso DownloadManager
"""

# SPDX-License-Identifier: GPL-2.0-or-later

import logging
import os
import pathlib
import tempfile
from typing import TYPE_CHECKING, Any, Dict, Optional

import requests

from kickiso.cexceptions import AcquisitionError

if TYPE_CHECKING:
    from requests import Response

    from kickiso.settings import Settings


def join_url(base: str, name: str) -> str:
    """
    :param base: The mirror URL, with or without trailing slash.
    :param name: The file name on the mirror.
    :return: The URL of ``name`` below ``base``.
    """
    return f"{base.rstrip('/')}/{name.lstrip('/')}"


class DownloadManager:
    """
    Fetches files over HTTP(S). Files are written atomically: readers either see the previous content or the complete
    new content, never a partial download.
    """

    CHUNK_SIZE = 1024 * 1024

    def __init__(self, settings: "Settings") -> None:
        """
        Constructor

        :param settings: Provides the proxies and the timeout.
        """
        self.logger = logging.getLogger()
        # requests wants a dict like:  protocol: proxy_uri
        self.proxies: Dict[str, str] = settings.proxy_url_ext
        self.timeout: int = settings.download_timeout

    def urlread(self, url: str, proxies: Any = None, stream: bool = False) -> "Response":
        """
        Read the content of a given URL and pass the requests. Response object to the caller.

        :param url: The URL the request.
        :param proxies: Override the default proxies.
        :param stream: Do not fetch the body right away.
        :returns: The Python ``requests.Response`` object.
        """
        if proxies is None:
            proxies = self.proxies
        return requests.get(url, proxies=proxies, timeout=self.timeout, stream=stream)

    def download_file(self, url: str, destination: str, proxies: Optional[Any] = None):
        """
        Download ``url`` to ``destination``. The body is streamed into a temporary file next to the destination which
        replaces the destination only after the transfer completed.

        :param url: The URL to download.
        :param destination: The local path of the file.
        :param proxies: Override the default proxies.
        :raises AcquisitionError: In case of network errors, HTTP errors or if the file could not be written.
        """
        dest_path = pathlib.Path(destination)
        self.logger.info('Downloading "%s" to "%s"', url, dest_path)
        try:
            tmp_fd, tmp_name = tempfile.mkstemp(
                prefix=f".{dest_path.name}.", suffix=".part", dir=str(dest_path.parent)
            )
        except OSError as error:
            raise AcquisitionError(
                "Could not write %s: %s", dest_path, error
            ) from error
        try:
            with os.fdopen(tmp_fd, "wb") as tmp_file:
                response = self.urlread(url, proxies=proxies, stream=True)
                with response:
                    response.raise_for_status()
                    for chunk in response.iter_content(chunk_size=self.CHUNK_SIZE):
                        tmp_file.write(chunk)
            os.replace(tmp_name, dest_path)
        except requests.RequestException as error:
            self._discard(tmp_name)
            raise AcquisitionError("Download of %s failed: %s", url, error) from error
        except OSError as error:
            self._discard(tmp_name)
            raise AcquisitionError(
                "Could not write %s: %s", dest_path, error
            ) from error
        except BaseException:
            self._discard(tmp_name)
            raise
        self.logger.info('Download of "%s" complete', url)

    def _discard(self, tmp_name: str):
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
