"""Unread counters keyed by free-text labels (category, severity)."""

from collections.abc import Iterable, Iterator, MutableMapping


class LabelCounts(MutableMapping[str, int]):
    """Mapping of label to count with case-insensitive keys.

    Keys compare by ``str.casefold()``; the first spelling seen is the one
    reported. Adding counts for ``"Billing"`` and ``"billing"`` yields a single
    ``"Billing"`` entry with the summed count.
    """

    def __init__(self, pairs: Iterable[tuple[str | None, int]] = ()):
        self._data: dict[str, tuple[str, int]] = {}
        for label, count in pairs:
            self.add(label, count)

    @staticmethod
    def _fold(label: str) -> str:
        return label.casefold()

    def add(self, label: str | None, count: int) -> None:
        """Accumulate ``count`` under ``label``; null or blank labels are dropped."""
        if label is None or not label.strip():
            return
        key = self._fold(label)
        spelling, current = self._data.get(key, (label, 0))
        self._data[key] = (spelling, current + count)

    def __getitem__(self, label: str) -> int:
        return self._data[self._fold(label)][1]

    def __setitem__(self, label: str, count: int) -> None:
        key = self._fold(label)
        spelling = self._data[key][0] if key in self._data else label
        self._data[key] = (spelling, count)

    def __delitem__(self, label: str) -> None:
        del self._data[self._fold(label)]

    def __iter__(self) -> Iterator[str]:
        return (spelling for spelling, _ in self._data.values())

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"LabelCounts({dict(self)!r})"


def collect_counts(rows: Iterable[tuple[str | None, int]]) -> dict[str, int]:
    """Fold ``(label, count)`` rows from a GROUP BY into a plain dict."""
    return dict(LabelCounts(rows))
