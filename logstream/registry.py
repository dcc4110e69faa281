"""Source registry: fixed name -> Source mapping built once at startup."""

import logging
from typing import Iterator

from logstream.models import Source

logger = logging.getLogger(__name__)


class UnknownSourceError(KeyError):
    """Raised when a source name is not configured."""


class SourceRegistry:
    def __init__(self, sources: list[Source]):
        self._sources: dict[str, Source] = {}
        for source in sources:
            if source.name in self._sources:
                raise ValueError(f"Duplicate source name: {source.name}")
            self._sources[source.name] = source

    @classmethod
    def from_mapping(cls, mapping: dict[str, str]) -> "SourceRegistry":
        """Build sources from ``{name: path}``, positioning each at its current end."""
        sources = [Source.open(name, path) for name, path in mapping.items()]
        for s in sources:
            logger.info("Registered source %s -> %s (offset %d)", s.name, s.path, s.last_known_size)
        return cls(sources)

    def get(self, name: str) -> Source:
        try:
            return self._sources[name]
        except KeyError:
            raise UnknownSourceError(name) from None

    def names(self) -> list[str]:
        return list(self._sources)

    def paths(self) -> dict[str, str]:
        return {name: s.path for name, s in self._sources.items()}

    def __contains__(self, name: object) -> bool:
        return name in self._sources

    def __iter__(self) -> Iterator[Source]:
        return iter(list(self._sources.values()))

    def __len__(self) -> int:
        return len(self._sources)
