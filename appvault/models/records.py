"""Per-domain metadata records stored as JSON arrays inside a backup archive.

Wire keys match the archive format written by earlier releases
(``hasP12``, ``teamID``, ``hasIPA`` …) so old archives still restore.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol, Sequence, TypeVar

from loguru import logger


class RecordError(ValueError):
    """A metadata record or metadata file does not match its schema."""


def _require_str(data: dict[str, Any], key: str) -> str:
    value = data.get(key)
    if not isinstance(value, str) or not value:
        raise RecordError(f"missing or invalid '{key}'")
    return value


def _require_id(data: dict[str, Any], key: str) -> str:
    """Entity identifiers become file names, so path syntax is rejected."""
    value = _require_str(data, key)
    if "/" in value or "\\" in value or value in (".", "..") or "\x00" in value:
        raise RecordError(f"'{key}' is not a valid identifier: {value!r}")
    return value


def _optional_str(data: dict[str, Any], key: str) -> str | None:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise RecordError(f"'{key}' must be a string")
    return value


def _optional_bool(data: dict[str, Any], key: str) -> bool:
    value = data.get(key, False)
    if isinstance(value, bool):
        return value
    # Older archives store flags as strings
    if isinstance(value, str):
        return value.lower() == "true"
    raise RecordError(f"'{key}' must be a boolean")


@dataclass
class CertificateRecord:
    """Signing identity metadata. ``password`` is the only secret field."""

    uuid: str
    has_p12: bool = False
    has_provision: bool = False
    name: str | None = None
    team_id: str | None = None
    team_name: str | None = None
    expiration: float | None = None  # seconds since epoch
    ppq_check: bool = False
    password: str | None = None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"uuid": self.uuid}
        if self.has_p12:
            d["hasP12"] = True
        if self.has_provision:
            d["hasProvision"] = True
        if self.name is not None:
            d["name"] = self.name
        if self.team_id is not None:
            d["teamID"] = self.team_id
        if self.team_name is not None:
            d["teamName"] = self.team_name
        if self.expiration is not None:
            d["date"] = self.expiration
        d["ppQCheck"] = self.ppq_check
        if self.password is not None:
            d["password"] = self.password
        return d

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CertificateRecord:
        date = data.get("date")
        if date is not None and (isinstance(date, bool) or not isinstance(date, (int, float))):
            raise RecordError("'date' must be a number")
        return cls(
            uuid=_require_id(data, "uuid"),
            has_p12=_optional_bool(data, "hasP12"),
            has_provision=_optional_bool(data, "hasProvision"),
            name=_optional_str(data, "name"),
            team_id=_optional_str(data, "teamID"),
            team_name=_optional_str(data, "teamName"),
            expiration=float(date) if date is not None else None,
            ppq_check=_optional_bool(data, "ppQCheck"),
            password=_optional_str(data, "password"),
        )


@dataclass
class SourceRecord:
    """Remote app-repository subscription."""

    url: str
    name: str
    identifier: str

    def to_dict(self) -> dict[str, Any]:
        return {"url": self.url, "name": self.name, "identifier": self.identifier}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SourceRecord:
        url = _require_str(data, "url")
        return cls(
            url=url,
            name=_require_str(data, "name"),
            # identifier falls back to the locator itself
            identifier=_optional_str(data, "identifier") or url,
        )


@dataclass
class AppRecord:
    """Signed or imported application bundle metadata."""

    uuid: str
    name: str | None = None
    identifier: str | None = None
    version: str | None = None
    has_ipa: bool = False

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"uuid": self.uuid}
        if self.name is not None:
            d["name"] = self.name
        if self.identifier is not None:
            d["identifier"] = self.identifier
        if self.version is not None:
            d["version"] = self.version
        if self.has_ipa:
            d["hasIPA"] = "true"
        return d

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AppRecord:
        return cls(
            uuid=_require_id(data, "uuid"),
            name=_optional_str(data, "name"),
            identifier=_optional_str(data, "identifier"),
            version=_optional_str(data, "version"),
            has_ipa=_optional_bool(data, "hasIPA"),
        )


class MetadataRecord(Protocol):
    def to_dict(self) -> dict[str, Any]: ...


R = TypeVar("R", CertificateRecord, SourceRecord, AppRecord)


def dump_records(path: Path, records: Sequence[MetadataRecord]) -> None:
    """Write records as a JSON array."""
    data = [r.to_dict() for r in records]
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False, indent=2)


def load_records(path: Path, record_type: type[R]) -> list[R]:
    """
    Read a JSON array of records.

    Malformed elements are logged and skipped; a file that is not a JSON
    array raises ``RecordError``.
    """
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise RecordError(f"{path.name} is not valid UTF-8 JSON: {e}") from e

    if not isinstance(data, list):
        raise RecordError(f"{path.name} must contain a JSON array")

    records: list[R] = []
    for index, item in enumerate(data):
        if not isinstance(item, dict):
            logger.warning(f"Skipping non-object entry #{index} in {path.name}")
            continue
        try:
            records.append(record_type.from_dict(item))
        except RecordError as e:
            logger.warning(f"Skipping malformed entry #{index} in {path.name}: {e}")
    return records
