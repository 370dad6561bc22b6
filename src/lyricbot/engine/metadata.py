"""Deduplicated metadata of a lyric document."""

from typing import Dict, Iterable, Iterator, List, Mapping, Tuple


class MetadataStore:
    """Ordered mapping of metadata keys to their distinct values.

    Keys are stripped of surrounding whitespace; empty keys and empty values
    are dropped. Values keep the order of their first occurrence.
    """

    def __init__(self) -> None:
        self._entries: Dict[str, List[str]] = {}

    @classmethod
    def from_raw(cls, raw_metadata: Mapping[str, Iterable[str]]) -> "MetadataStore":
        """Build a store from raw metadata and deduplicate its values."""
        store = cls()
        store.load_from_raw(raw_metadata)
        store.deduplicate_values()
        return store

    def load_from_raw(self, raw_metadata: Mapping[str, Iterable[str]]) -> None:
        for raw_key, values in raw_metadata.items():
            key = raw_key.strip()
            if not key:
                continue
            bucket = self._entries.setdefault(key, [])
            for value in values:
                value = value.strip()
                if value:
                    bucket.append(value)

    def deduplicate_values(self) -> None:
        for key, values in self._entries.items():
            self._entries[key] = list(dict.fromkeys(values))

    def get(self, key: str) -> List[str]:
        return list(self._entries.get(key, []))

    def keys(self) -> List[str]:
        return list(self._entries)

    def items(self) -> Iterator[Tuple[str, List[str]]]:
        for key, values in self._entries.items():
            yield key, list(values)

    def to_dict(self) -> Dict[str, List[str]]:
        return {key: list(values) for key, values in self._entries.items()}

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MetadataStore):
            return NotImplemented
        return self._entries == other._entries

    def __repr__(self) -> str:
        return f"MetadataStore({self._entries!r})"
