"""
HTML helpers for Canvas content fields.

Canvas stores assignment, quiz and page bodies as HTML. Everything we hand
to callers must be plain text, so every content field goes through
clean_html_content().
"""

from __future__ import annotations

import re
from typing import List, Optional

from bs4 import BeautifulSoup


# ---------------------------------------------------------------------------
# Patterns
# ---------------------------------------------------------------------------

TAG_RE = re.compile(r"<[^>]*>")

# Only these entities are decoded; anything else is left as written.
ENTITIES = {
    "&amp;": "&",
    "&lt;": "<",
    "&gt;": ">",
    "&quot;": '"',
    "&#39;": "'",
    "&nbsp;": " ",
}
ENTITY_RE = re.compile("|".join(re.escape(e) for e in ENTITIES))

FILES_MARKER = "viewer/files/"


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def clean_html_content(html: Optional[str]) -> str:
    """
    Turn an HTML fragment into plain text.

    - removes every <...> tag
    - decodes &amp; &lt; &gt; &quot; &#39; &nbsp; (single pass, so "&amp;lt;" -> "&lt;")
    - trims surrounding whitespace

    Never raises. The result is NOT escaped again.
    """
    if not html:
        return ""

    text = TAG_RE.sub("", str(html))
    text = ENTITY_RE.sub(lambda m: ENTITIES[m.group(0)], text)
    return text.strip()


def extract_file_links(html: Optional[str]) -> List[str]:
    """
    Collect references to exported course files (viewer/files/...) from
    href and src attributes, in document order and without duplicates.
    """
    if not html:
        return []

    soup = BeautifulSoup(str(html), "html.parser")

    links: List[str] = []
    for el in soup.select("[href], [src]"):
        for attr in ("href", "src"):
            value = el.get(attr)
            if not value or FILES_MARKER not in value:
                continue
            value = value.strip()
            if value not in links:
                links.append(value)

    return links
