from __future__ import annotations


# Overrides arrive as loosely typed CLI pairs or JSON payloads, so typing stays flexible here.
from typing import Any, Mapping

import yaml

from floodreach.config.settings import Settings

"""
Per-run settings overrides (safe subset).

The CLI accepts `--set dotted.key=value` pairs to tune a few knobs for a single run.
This module:
- parses the pairs into a nested mapping,
- deep-merges it onto current settings, rejecting keys outside the whitelist,
- re-validates with Pydantic to ensure types/ranges remain correct.

Data file paths are not overridable this way; they have dedicated CLI flags.
"""

# A value of True means "allow any keys under this subtree".
# A nested dict means "only allow the listed keys, recursively".
ALLOWED_SETTINGS_OVERRIDES_TREE: dict[str, Any] = {
    "engine": True,
    "display": True,
    "floodplain": {"hundred_year_zones": True, "zone_property": True},
}


def parse_override_pairs(pairs: list[str]) -> dict[str, Any]:
    """Turn `a.b=value` strings into a nested mapping; values are parsed as YAML scalars."""
    out: dict[str, Any] = {}
    for pair in pairs:
        if "=" not in pair:
            raise ValueError(f"Invalid override '{pair}', expected KEY=VALUE")
        dotted, raw = pair.split("=", 1)
        keys = [k.strip() for k in dotted.split(".")]
        if not all(keys):
            raise ValueError(f"Invalid override key '{dotted}'")
        node = out
        for key in keys[:-1]:
            child = node.setdefault(key, {})
            if not isinstance(child, dict):
                raise ValueError(f"Override '{dotted}' conflicts with an earlier value")
            node = child
        node[keys[-1]] = yaml.safe_load(raw) if raw.strip() else ""
    return out


def _merge_allowed(
    base: Mapping[str, Any],
    override: Mapping[str, Any],
    allowed: Mapping[str, Any] | bool,
    path: tuple[str, ...] = (),
) -> dict[str, Any]:
    """Return `base` with `override` applied, checking each key against `allowed`.

    `base` is copied, never mutated. Everything below a `True` node is merged freely.
    """
    merged: dict[str, Any] = dict(base)
    for key, value in override.items():
        dotted = ".".join((*path, key))
        if allowed is not True and key not in allowed:
            raise ValueError(f"--set key not allowed: '{dotted}'")
        sub_allowed = True if allowed is True else allowed[key]
        current = merged.get(key)

        if isinstance(value, Mapping) and isinstance(current, Mapping):
            merged[key] = _merge_allowed(current, value, sub_allowed, (*path, key))
        elif sub_allowed is not True:
            raise ValueError(f"--set key '{dotted}' must be a mapping")
        else:
            merged[key] = value
    return merged


def apply_settings_overrides(
    settings: Settings, overrides: Mapping[str, Any] | None
) -> Settings:
    if not overrides:
        return settings

    merged_payload = _merge_allowed(
        settings.model_dump(mode="python"), overrides, ALLOWED_SETTINGS_OVERRIDES_TREE
    )
    return Settings.model_validate(merged_payload)
