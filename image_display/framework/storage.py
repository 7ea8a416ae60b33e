from __future__ import annotations

import logging
from typing import Any, Callable, Generic, Hashable, Iterable, Mapping, Protocol, TypeVar

logger = logging.getLogger(__name__)

EntityT = TypeVar("EntityT")


class EntityStorage(Protocol[EntityT]):
    entity_type: str

    def load(self, entity_id: Hashable) -> EntityT | None: ...

    def load_multiple(self, ids: Iterable[Hashable] | None = None) -> dict[Any, EntityT]: ...


class InMemoryEntityStorage(Generic[EntityT]):
    """Dictionary-backed entity storage.

    ``load_multiple(None)`` returns every entity in insertion order; otherwise
    the requested order is kept and unknown ids are skipped. Lookups are
    counted so callers can assert that a code path did not touch storage.
    """

    def __init__(self, entity_type: str, entities: Mapping[Any, EntityT] | None = None):
        self.entity_type = entity_type
        self._entities: dict[Any, EntityT] = dict(entities or {})
        self.load_calls = 0

    @classmethod
    def from_dict(
        cls,
        entity_type: str,
        raw: Any,
        factory: Callable[[Any, Any], EntityT],
    ) -> "InMemoryEntityStorage[EntityT]":
        if raw is None:
            raw = {}
        if not isinstance(raw, Mapping):
            raise ValueError(f"Invalid config type for {entity_type}: expected mapping, got {type(raw).__name__}")
        entities = [factory(key, value) for key, value in raw.items()]
        # Entities are keyed by their own id so "1" and 1 resolve the same way.
        return cls(entity_type, {getattr(entity, "id"): entity for entity in entities})

    def load(self, entity_id: Hashable) -> EntityT | None:
        self.load_calls += 1
        if entity_id is None or entity_id == "":
            return None
        entity = self._entities.get(entity_id)
        if entity is None:
            logger.debug("No %s entity with id %r", self.entity_type, entity_id)
        return entity

    def load_multiple(self, ids: Iterable[Hashable] | None = None) -> dict[Any, EntityT]:
        self.load_calls += 1
        if ids is None:
            return dict(self._entities)

        loaded: dict[Any, EntityT] = {}
        missing: list[Any] = []
        for entity_id in ids:
            entity = self._entities.get(entity_id)
            if entity is None:
                missing.append(entity_id)
                continue
            loaded[entity_id] = entity
        if missing:
            logger.debug("Missing %s entities: %s", self.entity_type, ", ".join(map(str, missing)))
        return loaded

    def save(self, entity_id: Hashable, entity: EntityT) -> None:
        self._entities[entity_id] = entity

    def delete(self, entity_id: Hashable) -> None:
        self._entities.pop(entity_id, None)

    def __contains__(self, entity_id: object) -> bool:
        return entity_id in self._entities

    def __len__(self) -> int:
        return len(self._entities)
