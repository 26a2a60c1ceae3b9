"""Lookup of the webserver API key in a dnsdist Lua configuration file.

Only the first ``setWebserverConfig({... apiKey="..."})`` statement counts;
later ones are ignored.
"""

import logging
import re
from pathlib import Path
from typing import Union

logger = logging.getLogger(__name__)

API_KEY_PATTERN = re.compile(r'setWebserverConfig\(.*\{.*\bapiKey\s*=\s*"(.+?)"')


def extract_api_key(text: str) -> str:
    match = API_KEY_PATTERN.search(text)
    if match is None:
        return ""
    return match.group(1)


def read_api_key(path: Union[str, Path]) -> str:
    """Return the API key configured in ``path``, or ``""`` if there is none."""
    try:
        text = Path(path).read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        logger.debug("Cannot read %s, sending requests without API key: %s", path, exc)
        return ""

    key = extract_api_key(text)
    if not key:
        logger.debug("No apiKey found in %s", path)
    return key
