"""
Source registry.

Holds every registered source by id and by name. The priority order used for
publishing comes from the configured source list, not from registration
order.
"""

from __future__ import annotations

from collections.abc import Callable, Collection, Iterator

from cmpcore.config import Config
from cmpcore.context.types import SourceStatus
from cmpcore.sources.source import Source


class SourceRegistry:
    """
    Registered sources, grouped by name.

    Usage:
        registry = SourceRegistry(lambda: engine.config)
        registry.register(source)
        for source in registry.eligible({SourceStatus.COMPLETED}):
            ...
    """

    def __init__(self, get_config: Callable[[], Config]) -> None:
        self._get_config = get_config
        self.sources: dict[int, Source] = {}
        self.sources_by_name: dict[str, list[Source]] = {}

    def __len__(self) -> int:
        return len(self.sources)

    def __contains__(self, source_id: object) -> bool:
        return source_id in self.sources

    def __iter__(self) -> Iterator[Source]:
        return iter(self.all())

    def register(self, source: Source) -> int:
        self.sources[source.id] = source
        self.sources_by_name.setdefault(source.name, []).append(source)
        return source.id

    def unregister(self, source_id: int) -> Source | None:
        """Remove a source; unknown ids are ignored."""
        source = self.sources.pop(source_id, None)
        if source is None:
            return None

        group = [s for s in self.sources_by_name.get(source.name, []) if s.id != source_id]
        if group:
            self.sources_by_name[source.name] = group
        else:
            self.sources_by_name.pop(source.name, None)
        return source

    def all(self) -> list[Source]:
        """Every registered source in registration order."""
        return list(self.sources.values())

    def get(self, source_id: int) -> Source | None:
        return self.sources.get(source_id)

    def get_by_name(self, name: str) -> list[Source]:
        return list(self.sources_by_name.get(name, []))

    def names(self) -> list[str]:
        return list(self.sources_by_name)

    def eligible(self, statuses: Collection[SourceStatus] | None = None) -> list[Source]:
        """
        Available sources in configured priority order.

        Within one name, sources keep registration order. Sources whose name
        is not configured are never eligible.
        """
        result: list[Source] = []
        for name in self._get_config().get_source_names():
            for source in self.sources_by_name.get(name, []):
                if statuses is not None and source.status not in statuses:
                    continue
                if source.is_available():
                    result.append(source)
        return result

    def reset_all(self) -> None:
        for source in self:
            source.reset()
