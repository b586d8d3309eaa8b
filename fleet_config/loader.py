"""
Configuration Loader (``fleet_config.loader``).

Responsibility
--------------
Loads the import configuration YAML and parses it into the frozen
``fleet_config.schema`` dataclasses. Callers use
``fleet_config.load_import_config()``; the parse helpers here are public so
tests can feed dicts directly.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Structurally invalid content  -> ``ConfigValidationError`` listing every
  problem found, not just the first.
"""

from __future__ import annotations

import hashlib
import json
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from fleet_config.schema import (
    ColumnAliasTable,
    DateOrder,
    EarningProviderDef,
    ImportConfigDef,
    ImportDefaults,
    PlaceholderDef,
)
from fleet_kernel.exceptions import ConfigValidationError


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path, encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON serialization; identical data, identical checksum."""
    canonical = json.dumps(data, sort_keys=True, default=str, ensure_ascii=False)
    return hashlib.sha256(canonical.encode()).hexdigest()


def _aliases(value: Any, where: str, problems: list[str]) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        problems.append(f"{where} must be a list of strings")
        return ()
    out: list[str] = []
    for item in value:
        if item is None or not str(item).strip():
            problems.append(f"{where} contains an empty alias")
            continue
        out.append(str(item))
    return tuple(out)


def parse_alias_table(data: dict[str, Any], problems: list[str]) -> ColumnAliasTable:
    """Parse the ``fields`` and ``earning_providers`` sections."""
    fields = data.get("fields") or {}
    if not isinstance(fields, dict):
        problems.append("fields must be a mapping")
        fields = {}

    date_aliases = _aliases(fields.get("date"), "fields.date", problems)
    if not date_aliases:
        problems.append("fields.date must list at least one alias")

    providers: list[EarningProviderDef] = []
    seen: set[str] = set()
    for i, raw in enumerate(data.get("earning_providers") or []):
        if not isinstance(raw, dict) or not str(raw.get("name") or "").strip():
            problems.append(f"earning_providers[{i}] needs a name")
            continue
        name = str(raw["name"]).strip()
        if name.casefold() in seen:
            problems.append(f"earning provider {name!r} is defined twice")
            continue
        seen.add(name.casefold())
        # A provider's own name always matches its column
        aliases = _aliases(raw.get("aliases"), f"earning_providers[{name}].aliases", problems)
        if name not in aliases:
            aliases = (name, *aliases)
        providers.append(EarningProviderDef(name=name, aliases=aliases))

    return ColumnAliasTable(
        date=date_aliases,
        driver=_aliases(fields.get("driver"), "fields.driver", problems),
        vehicle=_aliases(fields.get("vehicle"), "fields.vehicle", problems),
        notes=_aliases(fields.get("notes"), "fields.notes", problems),
        earning_providers=tuple(providers),
    )


def parse_defaults(data: dict[str, Any], problems: list[str]) -> ImportDefaults:
    """Parse the ``defaults`` section; absent keys keep the schema defaults."""
    raw = data.get("defaults") or {}
    if not isinstance(raw, dict):
        problems.append("defaults must be a mapping")
        raw = {}
    base = ImportDefaults()

    date_order = base.date_order
    if "date_order" in raw:
        try:
            date_order = DateOrder(str(raw["date_order"]).lower())
        except ValueError:
            problems.append(
                f"defaults.date_order must be one of {[d.value for d in DateOrder]}, got {raw['date_order']!r}"
            )

    def positive_int(key: str, default: int) -> int:
        value = raw.get(key, default)
        if not isinstance(value, int) or isinstance(value, bool) or value < 1:
            problems.append(f"defaults.{key} must be a positive integer")
            return default
        return value

    def boolean(key: str, default: bool) -> bool:
        value = raw.get(key, default)
        if not isinstance(value, bool):
            problems.append(f"defaults.{key} must be true or false")
            return default
        return value

    max_amount = base.max_earning_amount
    if "max_earning_amount" in raw:
        try:
            max_amount = Decimal(str(raw["max_earning_amount"]))
            if max_amount <= 0:
                raise InvalidOperation
        except (InvalidOperation, ValueError):
            problems.append("defaults.max_earning_amount must be a positive number")
            max_amount = base.max_earning_amount

    delimiter = raw.get("delimiter", base.delimiter)
    if delimiter is not None and (not isinstance(delimiter, str) or len(delimiter) != 1):
        problems.append("defaults.delimiter must be a single character")
        delimiter = base.delimiter

    placeholders_raw = raw.get("placeholders") or {}
    if not isinstance(placeholders_raw, dict):
        problems.append("defaults.placeholders must be a mapping")
        placeholders_raw = {}
    placeholders = PlaceholderDef(
        driver=str(placeholders_raw.get("driver", base.placeholders.driver)),
        vehicle=str(placeholders_raw.get("vehicle", base.placeholders.vehicle)),
    )

    return ImportDefaults(
        date_order=date_order,
        delimiter=delimiter,
        progress_every_rows=positive_int("progress_every_rows", base.progress_every_rows),
        parse_workers=positive_int("parse_workers", base.parse_workers),
        default_notes=str(raw.get("default_notes", base.default_notes)),
        max_earning_amount=max_amount,
        warn_on_zero_earnings=boolean("warn_on_zero_earnings", base.warn_on_zero_earnings),
        placeholders=placeholders,
    )


def parse_import_config(data: dict[str, Any], source: str = "<dict>") -> ImportConfigDef:
    """
    Parse a full import configuration dict.

    Raises:
        ConfigValidationError: if any section is invalid.
    """
    if not isinstance(data, dict):
        raise ConfigValidationError(source, ["top level must be a mapping"])
    problems: list[str] = []
    aliases = parse_alias_table(data, problems)
    defaults = parse_defaults(data, problems)
    version = data.get("version", 1)
    if not isinstance(version, int):
        problems.append("version must be an integer")
        version = 1
    if problems:
        raise ConfigValidationError(source, problems)
    return ImportConfigDef(
        version=version,
        aliases=aliases,
        defaults=defaults,
        checksum=compute_checksum(data),
        source=source,
    )
