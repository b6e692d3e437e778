"""Case-insensitive substring matching used by search fields."""


def matches_query(value: str, query: str) -> bool:
    """Return True if ``value`` contains the trimmed ``query``, ignoring case.

    An empty or whitespace-only query matches everything.
    """
    normalized_query = query.strip().lower()
    if not normalized_query:
        return True
    return normalized_query in value.lower()