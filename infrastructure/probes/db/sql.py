UNKNOWN_OPERATION = "unknown"

# Characters skipped before the first keyword: "(SELECT ...", "\n  UPDATE ..."
_LEADING_CHARS = "( \t\n\r\0\x0b"
_OPERATION_SLICE = 15


def operation_from_sql(query) -> str:
    """
    Extract the SQL operation (select, insert, update, ...) from a query.

    Only the first characters are inspected; anything that cannot be parsed
    yields "unknown".
    """
    if not isinstance(query, str):
        return UNKNOWN_OPERATION

    words = query.lstrip(_LEADING_CHARS)[:_OPERATION_SLICE].split(None, 1)
    if not words:
        return UNKNOWN_OPERATION
    return words[0].lower()
