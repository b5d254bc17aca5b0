"""Helpers for directory CSVs hosted on GitHub.

The directory's maintainers edit the CSV through GitHub's web editor and
often paste the "blob" page URL into config.  Blob pages return HTML, so
the fetcher rewrites them to the raw file URL first.
"""

from __future__ import annotations

import re

_BLOB_RE = re.compile(r"^https?://github\.com/([^/]+)/([^/]+)/blob/(.+)$")
_RAW_RE = re.compile(r"^https?://raw\.githubusercontent\.com/([^/]+)/([^/]+)/(.+)$")


def to_raw_url(url: str) -> str:
    """Rewrite a ``github.com/.../blob/...`` URL to its raw-content URL.

    Any other URL is returned unchanged.
    """
    match = _BLOB_RE.match(url.strip())
    if not match:
        return url.strip()
    owner, repo, rest = match.groups()
    return f"https://raw.githubusercontent.com/{owner}/{repo}/{rest}"


def edit_url_for(source_url: str) -> str | None:
    """Return the GitHub web-editor URL for a raw or blob CSV URL.

    Returns ``None`` for URLs not hosted on GitHub.
    """
    match = _RAW_RE.match(to_raw_url(source_url))
    if not match:
        return None
    owner, repo, rest = match.groups()
    return f"https://github.com/{owner}/{repo}/edit/{rest}"
