"""Identifier case conversion.

Keys are split into lowercase words on underscores and on lower-to-upper
transitions, then reassembled by a case method. A single leading underscore
survives every conversion, so ``_private_key`` round-trips through camel case
as ``_privateKey``.
"""

import re
from functools import lru_cache
from typing import Any, Callable, Optional

from typing_extensions import TypeAlias

__all__ = (
    "CASE_METHODS",
    "CaseMethod",
    "get_case_method",
    "transform_key",
    "transform_keys",
)

CaseMethod: TypeAlias = Optional[Callable[[str, int], str]]

# "firstName" -> "first Name", "FirstName" -> " First Name"
_WORD_BOUNDARY_RE = re.compile(r"(\b|^|[a-z])([A-Z])")
_MULTIPLE_SPACES_RE = re.compile(r" +")


def _camel(word: str, index: int) -> str:
    return word if index == 0 else word[:1].upper() + word[1:]


def _snake(word: str, index: int) -> str:
    return word if index == 0 else "_" + word


def _pascal(word: str, index: int) -> str:
    return word[:1].upper() + word[1:]


def _constant(word: str, index: int) -> str:
    return word.upper() if index == 0 else "_" + word.upper()


CASE_METHODS: "dict[str, CaseMethod]" = {
    "none": None,
    "camel": _camel,
    "snake": _snake,
    "pascal": _pascal,
    "constant": _constant,
}


def get_case_method(name: str) -> CaseMethod:
    """Look up a case method by name.

    Raises:
        KeyError: If ``name`` is not one of ``snake``, ``camel``, ``pascal``, ``constant`` or ``none``.
    """
    return CASE_METHODS[name]


@lru_cache(maxsize=1024)
def transform_key(key: str, method: CaseMethod) -> str:
    """Convert a single identifier with ``method``.

    Args:
        key: The identifier to convert.
        method: A case method from :data:`CASE_METHODS`; ``None`` returns the key unchanged.

    Returns:
        The converted identifier.
    """
    if method is None:
        return key
    spaced = _WORD_BOUNDARY_RE.sub(r"\1 \2", key.replace("_", " "))
    words = _MULTIPLE_SPACES_RE.sub(" ", spaced).strip().lower().split(" ")
    prefix = "_" if key.startswith("_") else ""
    return prefix + "".join(method(word, index) for index, word in enumerate(words))


def transform_keys(obj: Any, method: CaseMethod) -> Any:
    """Recursively convert the keys of dictionaries, including dictionaries nested in lists.

    Values that are neither dictionaries nor lists (dates, decimals, strings) are returned as-is.
    """
    if method is None or obj is None:
        return obj
    if isinstance(obj, list):
        return [transform_keys(item, method) for item in obj]
    if isinstance(obj, dict):
        return {transform_key(str(key), method): transform_keys(value, method) for key, value in obj.items()}
    return obj
