"""
SQL parameter binding utilities.

Every value that reaches a statement is stored in a ``ParameterRegistry`` under
a named placeholder (``:P1``, ``:user_id``) and the placeholder is what gets
rendered into the SQL text.
"""

import re
from typing import Any, Dict, Iterator, Mapping, Optional, Set

from ..exceptions import ConfigurationError

PARAM_MARKER = ":"

_POSITIONAL_KEY = re.compile(r"^:\d+$")


def normalize_key(key: Any) -> str:
    """
    Prepend the placeholder marker to a parameter name if it is missing.

    Examples:
        >>> normalize_key("user_id")
        ':user_id'
        >>> normalize_key(":user_id")
        ':user_id'
        >>> normalize_key(0)
        ':0'
    """
    key = str(key)
    if not key.startswith(PARAM_MARKER):
        key = f"{PARAM_MARKER}{key}"
    return key


class ParameterRegistry:
    """
    Ordered key -> value store for bound parameters of one builder.

    Generated keys come from an instance-scoped counter, so two builders never
    share state and the generated names are deterministic (:P1, :P2, ...).
    A generated name that a caller already registered by hand is skipped.

    Example:
        >>> params = ParameterRegistry()
        >>> params.create("alice")
        ':P1'
        >>> params.insert(30, "age")
        ':age'
        >>> params.as_dict()
        {':P1': 'alice', ':age': 30}
    """

    def __init__(self, prefix: str = "P"):
        self._prefix = prefix
        self._counter = 0
        self._values: Dict[str, Any] = {}
        self._generated: Set[str] = set()

    def create(self, value: Any) -> str:
        """Store ``value`` under a fresh generated key and return the key."""
        while True:
            self._counter += 1
            key = f"{PARAM_MARKER}{self._prefix}{self._counter}"
            if key not in self._values:
                break
        self._values[key] = value
        self._generated.add(key)
        return key

    def insert(self, value: Any, key: Any) -> str:
        """
        Store ``value`` under a caller-supplied key, replacing any previous value.

        Raises:
            ConfigurationError: If ``key`` was already handed out by ``create()``
        """
        key = normalize_key(key)
        self._check_caller_key(key)
        self._values[key] = value
        return key

    def _check_caller_key(self, key: str) -> None:
        if key in self._generated:
            raise ConfigurationError(
                f"Parameter {key} is already bound to a generated value.",
                details={"key": key},
            )

    def merge(self, data: Any) -> None:
        """
        Merge caller data supplied alongside a raw fragment.

        Mappings are merged key by key. Lists and tuples are appended
        positionally as :0, :1, ... after the positional keys already present.
        Any other value is appended as a single positional entry.

        Raises:
            ConfigurationError: If a mapping key was already handed out by
                ``create()``; nothing is merged in that case
        """
        if data is None:
            return

        if isinstance(data, Mapping):
            items = [(normalize_key(key), value) for key, value in data.items()]
            for key, _ in items:
                self._check_caller_key(key)
            self._values.update(items)
            return

        values = data if isinstance(data, (list, tuple)) else [data]
        position = sum(1 for key in self._values if _POSITIONAL_KEY.match(key))
        for offset, value in enumerate(values):
            self._values[f"{PARAM_MARKER}{position + offset}"] = value

    def get(self, key: Any, default: Optional[Any] = None) -> Any:
        return self._values.get(normalize_key(key), default)

    def as_dict(self) -> Dict[str, Any]:
        """Return a copy of the stored parameters in insertion order."""
        return dict(self._values)

    def __contains__(self, key: object) -> bool:
        return normalize_key(key) in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"ParameterRegistry({self._values!r})"
