"""
nginx-replay URL Utilities

Query-string rewriting and endpoint normalization. Both operate on a
path+query that is made absolute by joining it to the target prefix,
then strip the prefix back off.
"""

from urllib.parse import urlsplit, urlunsplit, parse_qsl, urlencode
from typing import Iterable, List, Tuple


def split_query_param(param: str) -> Tuple[str, str]:
    """
    Split a ``key=value`` rewrite into its parts.

    Args:
        param: Rewrite string such as ``"size=3"``

    Returns:
        (key, value) tuple; value is empty when no ``=`` is present
    """
    key, _, value = param.partition('=')
    return key, value


def _rebuild(parsed, query: List[Tuple[str, str]]) -> str:
    return urlunsplit((
        parsed.scheme,
        parsed.netloc,
        parsed.path,
        urlencode(query),
        parsed.fragment
    ))


def apply_query_params(prefix: str, path: str, params: Iterable[Tuple[str, str]]) -> str:
    """
    Replace or add query parameters on a logged request path.

    Each configured parameter is deleted from the query and then appended
    with the configured value, so it always ends up last.

    Args:
        prefix: Target URL prefix (e.g. ``http://localhost:8080``)
        path: Logged path and query (e.g. ``/users?page=2``)
        params: (key, value) pairs to force

    Returns:
        Rewritten path and query, relative to prefix

    Example:
        apply_query_params('http://h', '/a?x=1&y=2', [('x', '9')])
        # '/a?y=2&x=9'
    """
    parsed = urlsplit(prefix + path)
    query = parse_qsl(parsed.query, keep_blank_values=True)

    for key, value in params:
        query = [(k, v) for k, v in query if k != key]
        query.append((key, value))

    return _rebuild(parsed, query).replace(prefix, '', 1)


def normalize_endpoint(
    prefix: str,
    url: str,
    only_path: bool = False,
    delete_query: Iterable[str] = ()
) -> str:
    """
    Normalize a replay URL into an endpoint key for hit counting.

    Args:
        prefix: Target URL prefix
        url: Replay path and query
        only_path: If True, keep only the path (prefix path included)
        delete_query: Query keys to drop before counting

    Returns:
        Endpoint key
    """
    parsed = urlsplit(prefix + url)

    if only_path:
        return parsed.path

    delete_query = set(delete_query)
    if not delete_query:
        return url

    query = [
        (k, v) for k, v in parse_qsl(parsed.query, keep_blank_values=True)
        if k not in delete_query
    ]
    return _rebuild(parsed, query).replace(prefix, '', 1)
