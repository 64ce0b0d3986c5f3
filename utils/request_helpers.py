"""
Request parsing helpers for API routes.
"""

from typing import Any, List


def get_query_list(request: Any, name: str) -> List[str]:
    """
    Parse a list of tags from query parameters.

    Accepts, in order:
    - repeated name[] parameters (tags[]=a&tags[]=b)
    - repeated name parameters (tags=a&tags=b)
    and splits every value on commas, so "tags=a,-b" works too.

    Returns:
        Trimmed, lowercased, non-empty entries in request order
    """
    args = request.args
    values = args.getlist(f"{name}[]") or args.getlist(name)
    entries = []
    for value in values:
        for part in (value or '').split(','):
            part = part.strip().lower()
            if part:
                entries.append(part)
    return entries
