"""PostgreSQL identifier and literal quoting.

Used for column names produced from mapping keys and for the literal preview
of a statement. Bound values never go through :func:`escape_literal` on the
way to the database.
"""

__all__ = ("escape_identifier", "escape_literal")


def escape_identifier(value: str) -> str:
    """Quote ``value`` as an identifier, doubling embedded double quotes."""
    return '"' + value.replace('"', '""') + '"'


def escape_literal(value: str) -> str:
    """Quote ``value`` as a string constant.

    Single quotes and backslashes are doubled. When a backslash is present the
    constant is written in the ``E'...'`` escape string syntax so the result is
    the same whatever ``standard_conforming_strings`` is set to.
    """
    escaped = value.replace("'", "''")
    if "\\" in value:
        return " E'" + escaped.replace("\\", "\\\\") + "'"
    return "'" + escaped + "'"
