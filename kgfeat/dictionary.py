"""Bidirectional string <-> integer id mapping."""


class Dictionary:
    """Assigns dense integer ids to strings in first-seen order.

    Ids start at 0 and are never reassigned, so an id handed out once stays
    valid for the lifetime of the dictionary. Used for relation names in the
    embedding corpus and for node / edge-type vocabularies in ``Graph``.
    """

    __slots__ = ("_string_to_idx", "_idx_to_string")

    def __init__(self, strings=()):
        self._string_to_idx = {}
        self._idx_to_string = []
        for string in strings:
            self.get_index(string)

    def get_index(self, string: str) -> int:
        """Return the id for ``string``, assigning the next id if unseen."""
        idx = self._string_to_idx.get(string)
        if idx is None:
            idx = len(self._idx_to_string)
            self._string_to_idx[string] = idx
            self._idx_to_string.append(string)
        return idx

    def get_index_if_present(self, string: str):
        """Return the id for ``string``, or None without assigning one."""
        return self._string_to_idx.get(string)

    def lookup(self, string: str) -> int:
        """Return the id for ``string``; raise KeyError if it was never seen."""
        return self._string_to_idx[string]

    def get_string(self, idx: int) -> str:
        """Return the string for ``idx``; raise KeyError for unknown ids."""
        if idx < 0 or idx >= len(self._idx_to_string):
            raise KeyError(idx)
        return self._idx_to_string[idx]

    def __contains__(self, string):
        return string in self._string_to_idx

    def __len__(self):
        return len(self._idx_to_string)

    def __iter__(self):
        return iter(self._idx_to_string)
