import re
import html
from typing import Any, Dict, Iterable

SCRIPT_TAG = re.compile(r'<script.*?>.*?</script>', flags=re.DOTALL | re.IGNORECASE)


def sanitize_input(text):
    """Strip script blocks and HTML-escape user-entered free text."""
    if not isinstance(text, str):
        return text
    return html.escape(SCRIPT_TAG.sub('', text))


def sanitize_fields(data: Dict[str, Any], fields: Iterable[str]) -> Dict[str, Any]:
    """Sanitize only the named free-text fields; enums, dates and ids pass through."""
    fields = set(fields)
    return {k: sanitize_input(v) if k in fields else v for k, v in data.items()}
