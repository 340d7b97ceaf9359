import re
from typing import Any

_TAG_RE = re.compile(r'<[^>]*>')

def strip_tags(value: str) -> str:
    return _TAG_RE.sub('', value).strip()

def sanitize_input(data: Any) -> Any:
    """Strip HTML tags and surrounding whitespace from every string, recursing into dicts and lists."""
    if isinstance(data, str):
        return strip_tags(data)
    if isinstance(data, dict):
        return {k: sanitize_input(v) for k, v in data.items()}
    if isinstance(data, list):
        return [sanitize_input(v) for v in data]
    return data
