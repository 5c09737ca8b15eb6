import html
from typing import Optional

import bleach


def clean_text(text: Optional[str]) -> str:
    """
    Remove every HTML tag and trim surrounding whitespace. bleach escapes the
    text it keeps, so the entities are decoded again before storing plain text.
    """
    if not text:
        return ""
    return html.unescape(bleach.clean(text, tags=set(), strip=True)).strip()
