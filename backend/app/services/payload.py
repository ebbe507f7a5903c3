"""JSON payload helpers for the AI service."""

JSONValue = dict[str, "JSONValue"] | list["JSONValue"] | str | int | float | bool | None


def prune_nulls(value: JSONValue) -> JSONValue:
    """Recursively drop None from objects and arrays.

    The AI service schema rejects explicit nulls for optional fields, so
    absent values must be omitted at every depth, including inside the
    answers list.
    """
    if isinstance(value, dict):
        return {key: prune_nulls(item) for key, item in value.items() if item is not None}
    if isinstance(value, list):
        return [prune_nulls(item) for item in value if item is not None]
    return value
