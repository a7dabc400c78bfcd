"""ObjectDictionary: load the packaged CVE object list via importlib.resources, O(1) index lookup."""

import json
import logging
from importlib import resources
from typing import Any, Iterator

from .errors import UnknownObjectError
from .types import ObjectDef, SemanticType, ValueDecoder

logger = logging.getLogger(__name__)

_PROFILE_RESOURCE: dict[str, str] = {
    "cmmo-st": "pyfesto_cve.data.cmmo_st_objects",
}

OBJ_STATUS_WORD = 0x001
OBJ_CONTROL_WORD = 0x002


def _parse_labels(raw: Any) -> dict[int, str] | None:
    if not isinstance(raw, dict):
        return None  # tolerate malformed JSON
    return {int(k): str(v) for k, v in raw.items()}


def _parse_entry(raw: dict[str, Any]) -> ObjectDef:
    """Build ObjectDef from a JSON entry (index, key, name, type, width, decoder, description, labels)."""
    index = int(raw["index"])
    type_str = raw["type"]
    try:
        sem_type = SemanticType(type_str)
    except ValueError:
        raise ValueError(f"Unknown type {type_str!r} for object {index}")
    decoder_str = raw.get("decoder", ValueDecoder.SCALAR.value)
    try:
        decoder = ValueDecoder(decoder_str)
    except ValueError:
        raise ValueError(f"Unknown decoder {decoder_str!r} for object {index}")
    width = int(raw.get("width", sem_type.width))
    return ObjectDef(
        index=index,
        key=raw.get("key") or f"obj{index}",
        name=raw.get("name") or f"Object {index}",
        type=sem_type,
        width=width,
        decoder=decoder,
        description=raw.get("description", ""),
        labels=_parse_labels(raw.get("labels")),
    )


class ObjectDictionary:
    """
    In-memory map of object index to ObjectDef. Loaded from packaged JSON.
    Supports profile selection (default cmmo-st) or an explicit list of entries.
    """

    def __init__(self, profile: str = "cmmo-st", map_override: list[dict[str, Any]] | None = None) -> None:
        self._profile = profile.lower()
        self._by_index: dict[int, ObjectDef] = {}

        if map_override is not None:
            self._load(map_override)
            logger.debug("ObjectDictionary loaded from override: %d entries", len(self._by_index))
            return

        resource_name = _PROFILE_RESOURCE.get(self._profile)
        if not resource_name:
            raise ValueError(f"Unknown profile: {profile!r}")

        pkg, name = resource_name.rsplit(".", 1)
        json_name = f"{name}.json"
        try:
            with resources.files(pkg).joinpath(json_name).open("r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            raise FileNotFoundError(f"Object dictionary resource not found: {pkg}/{json_name}") from None

        if isinstance(data, list):
            entries = data
        elif isinstance(data, dict) and "entries" in data:
            entries = data["entries"]
        else:
            entries = []
        self._load(entries)
        logger.debug("ObjectDictionary loaded for profile %s: %d entries", self._profile, len(self._by_index))

    def _load(self, entries: list[Any]) -> None:
        for entry in entries:
            if not isinstance(entry, dict):
                continue
            obj = _parse_entry(entry)
            if obj.index in self._by_index:
                raise ValueError(f"Duplicate object index in dictionary: {obj.index}")
            self._by_index[obj.index] = obj

    def get(self, index: int) -> ObjectDef | None:
        """Return the ObjectDef for index, or None when the dictionary has no entry."""
        return self._by_index.get(index)

    def lookup(self, index: int) -> ObjectDef:
        """Return the ObjectDef for index; raise UnknownObjectError if not in the dictionary."""
        if index not in self._by_index:
            raise UnknownObjectError(index)
        return self._by_index[index]

    def find(self, key: str) -> ObjectDef:
        """Resolve an object by key (e.g. 'target_position') or by decimal/0x index string."""
        k = key.strip()
        for obj in self._by_index.values():
            if obj.key == k.lower():
                return obj
        try:
            index = int(k, 0)
        except ValueError:
            raise UnknownObjectError(-1, f"Unknown object: {key!r}") from None
        return self.lookup(index)

    def name_of(self, index: int | None) -> str:
        obj = self._by_index.get(index) if index is not None else None
        return obj.name if obj is not None else "Unknown"

    def __contains__(self, index: object) -> bool:
        return index in self._by_index

    def __iter__(self) -> Iterator[ObjectDef]:
        return iter(sorted(self._by_index.values(), key=lambda o: o.index))

    def __len__(self) -> int:
        return len(self._by_index)

    @property
    def profile(self) -> str:
        return self._profile


_default: dict[str, ObjectDictionary] = {}


def get_default_dictionary(profile: str = "cmmo-st") -> ObjectDictionary:
    """Load (once per profile) and return the packaged ObjectDictionary."""
    key = profile.lower()
    if key not in _default:
        _default[key] = ObjectDictionary(profile=key)
    return _default[key]
