from __future__ import annotations

import os
import posixpath
from urllib.parse import unquote, urlparse

import requests

# Accented names that the site's asset pipeline cannot serve.
_FILENAME_REPLACEMENTS = {"á": "a"}


class DownloadError(Exception):
    """Raised when an asset cannot be fetched."""


def url_basename(url: str) -> str:
    """File name of ``url`` without query string, percent-decoded."""
    return posixpath.basename(unquote(urlparse(url.strip()).path))


def normalize_filename(path: str) -> str:
    directory, name = os.path.split(path)
    for old, new in _FILENAME_REPLACEMENTS.items():
        name = name.replace(old, new)
    return os.path.join(directory, name)


def download_to_file(url: str, filename: str, *, timeout: float = 30.0) -> str:
    """
    Download ``url`` into ``filename`` unless the file already exists.

    :return: The path actually written (the file name is normalized first).
    :raises DownloadError: on a network error or a non-200 response.
    """
    filename = normalize_filename(filename)
    if os.path.exists(filename):
        return filename
    os.makedirs(os.path.dirname(filename) or ".", exist_ok=True)

    try:
        resp = requests.get(url, stream=True, timeout=timeout)
    except requests.RequestException as e:
        raise DownloadError(f"unable to fetch {url} to {filename}: {e}") from e

    with resp:
        if resp.status_code != 200:
            raise DownloadError(f"unable to fetch {url} to {filename}: HTTP {resp.status_code}")
        partial = filename + ".part"
        try:
            with open(partial, "wb") as f:
                for chunk in resp.iter_content(chunk_size=64 * 1024):
                    if chunk:
                        f.write(chunk)
        except requests.RequestException as e:
            raise DownloadError(f"unable to fetch {url} to {filename}: {e}") from e
        os.replace(partial, filename)
    return filename
