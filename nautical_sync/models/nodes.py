"""Helpers for reading GraphQL connection shapes."""

from typing import Any, Dict, List, Optional


def connection_nodes(value: Any) -> List[Dict[str, Any]]:
    """
    Flatten a GraphQL connection into its nodes.

    Handles ``{"edges": [{"node": ...}]}``, ``{"nodes": [...]}`` and plain
    lists (REST-style webhook bodies). ``None`` yields an empty list.
    """
    if value is None:
        return []
    if isinstance(value, list):
        return value
    if "edges" in value:
        return [edge["node"] for edge in value.get("edges") or []]
    return list(value.get("nodes") or [])


def first_present(data: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    """Return the value of the first key present with a non-None value."""
    for key in keys:
        value = data.get(key)
        if value is not None:
            return value
    return default


def graphql_id(data: Dict[str, Any], kind: str) -> Optional[str]:
    """
    Return the Shopify GraphQL id of *data*.

    REST webhook bodies carry a numeric ``id`` and the GraphQL form under
    ``admin_graphql_api_id``.
    """
    gid = data.get("admin_graphql_api_id")
    if gid:
        return gid
    raw = data.get("id")
    if raw is None:
        return None
    raw = str(raw)
    if raw.startswith("gid://"):
        return raw
    return f"gid://shopify/{kind}/{raw}"


# REST keys whose GraphQL name is not a plain camelCase conversion
REST_FIELD_ALIASES = {
    "body_html": "descriptionHtml",
}


def graphql_field_name(key: str) -> str:
    """Return the GraphQL spelling of a REST (snake_case) field name."""
    if key in REST_FIELD_ALIASES:
        return REST_FIELD_ALIASES[key]
    head, *rest = key.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def with_graphql_names(fields: Dict[str, Any]) -> Dict[str, Any]:
    """
    Copy *fields*, also exposing each snake_case key under its GraphQL name.

    Keys already present in GraphQL form win.
    """
    named = dict(fields)
    for key, value in fields.items():
        if "_" not in key:
            continue
        named.setdefault(graphql_field_name(key), value)
    return named
