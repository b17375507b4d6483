"""
Utility Functions
URL template trimming, encoding helpers, and host normalization.
"""

import logging
from urllib.parse import quote, urlparse

logger = logging.getLogger(__name__)

UTF8_BOM = '\ufeff'

# Characters encodeURIComponent leaves alone besides alphanumerics and "-_."
_COMPONENT_SAFE = "!~*'()"


def strip_bom(text: str) -> str:
    """Trim a leading UTF-8 BOM away, if any."""
    return text[1:] if text.startswith(UTF8_BOM) else text


def encode_spaces(url: str) -> str:
    """Percent-encode literal spaces; some services hand out hrefs containing them."""
    return url.replace(' ', '%20')


def quote_component(value: str) -> str:
    """Encode a single URL component (query value or path segment)."""
    return quote(value, safe=_COMPONENT_SAFE)


def cut_before_last(template: str, marker: str) -> str:
    """
    Drop everything from the last occurrence of *marker* on.

    Used to turn URI templates into plain URLs, e.g.
    ``.../processes/{id}{?offset,limit}`` with ``{id}`` -> ``.../processes/``.
    The template is returned unchanged when *marker* does not occur.
    """
    index = template.rfind(marker)
    if index < 0:
        return template
    return template[:index]


def cut_after_last(template: str, marker: str) -> str:
    """
    Keep everything up to and including the last *marker*.

    ``.../simple?search={search}{&offset}`` with ``=`` -> ``.../simple?search=``.
    """
    index = template.rfind(marker)
    if index < 0:
        return template
    return template[:index + len(marker)]


def normalize_host(host: str) -> str:
    """
    Reduce user input such as ``https://upstream.example.com/`` to a bare host.

    Args:
        host: Host name, optionally with scheme, port or trailing path.

    Returns:
        ``netloc`` part only (port preserved).
    """
    host = (host or '').strip()
    if not host:
        return ''
    if '://' not in host:
        host = 'https://' + host
    return urlparse(host).netloc
