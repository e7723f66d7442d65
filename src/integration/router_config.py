"""
YAML configuration for the fee router.

A config file may hold two top-level mappings:

    router:
      max_investors_per_page: 64
      skip_zero_locked: false
      log_level: INFO
    vault:
      vault_id: "0x..."
      authority: ...
      creator: ...
      quote_asset: ...
      base_asset: ...
      treasury: ...
      investor_fee_share_bps: 8000
      min_payout_lamports: 1000
      daily_cap_lamports: null
      total_investor_allocation: 1000000

`FEE_ROUTER_LOG_LEVEL` overrides `router.log_level`.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Mapping, Optional, Tuple

import yaml

from ..core.fee_router.math import MAX_INVESTORS_PER_PAGE
from ..core.fee_router.types import VaultConfig

LOG_LEVEL_ENV = "FEE_ROUTER_LOG_LEVEL"

_VAULT_KEYS = (
    "vault_id",
    "authority",
    "creator",
    "quote_asset",
    "base_asset",
    "treasury",
    "investor_fee_share_bps",
    "min_payout_lamports",
    "daily_cap_lamports",
    "total_investor_allocation",
)


@dataclass(frozen=True)
class RouterSettings:
    # Upper bound on roster size per page (never above the hard per-page limit).
    max_investors_per_page: int = MAX_INVESTORS_PER_PAGE
    # Drop roster entries whose locked balance is zero before the arithmetic.
    skip_zero_locked: bool = False
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        v = self.max_investors_per_page
        if not isinstance(v, int) or isinstance(v, bool):
            raise TypeError("max_investors_per_page must be an int")
        if not (1 <= v <= MAX_INVESTORS_PER_PAGE):
            raise ValueError(f"max_investors_per_page must be in [1, {MAX_INVESTORS_PER_PAGE}]: {v}")
        if not isinstance(self.skip_zero_locked, bool):
            raise TypeError("skip_zero_locked must be a bool")
        if not isinstance(self.log_level, str) or not isinstance(logging.getLevelName(self.log_level.upper()), int):
            raise ValueError(f"unknown log_level: {self.log_level!r}")

    @property
    def log_level_no(self) -> int:
        return logging.getLevelName(self.log_level.upper())


def _read_yaml(path: Path | str) -> Mapping[str, Any]:
    obj = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
    if obj is None:
        return {}
    if not isinstance(obj, Mapping):
        raise TypeError("config YAML must be a mapping")
    unknown = set(obj) - {"router", "vault"}
    if unknown:
        raise ValueError(f"unknown config sections: {sorted(unknown)}")
    return obj


def settings_from_mapping(obj: Optional[Mapping[str, Any]]) -> RouterSettings:
    if obj is None:
        obj = {}
    if not isinstance(obj, Mapping):
        raise TypeError("router config must be a mapping")
    allowed = {f.name for f in fields(RouterSettings)}
    unknown = set(obj) - allowed
    if unknown:
        raise ValueError(f"unknown router settings: {sorted(unknown)}")
    settings = RouterSettings(**dict(obj))
    env_level = os.environ.get(LOG_LEVEL_ENV)
    if env_level:
        settings = replace(settings, log_level=env_level)
    return settings


def vault_from_mapping(obj: Mapping[str, Any]) -> VaultConfig:
    if not isinstance(obj, Mapping):
        raise TypeError("vault config must be a mapping")
    unknown = set(obj) - set(_VAULT_KEYS)
    if unknown:
        raise ValueError(f"unknown vault settings: {sorted(unknown)}")
    missing = {"vault_id", "authority", "creator", "quote_asset", "base_asset", "treasury", "investor_fee_share_bps"} - set(obj)
    if missing:
        raise ValueError(f"missing vault settings: {sorted(missing)}")
    return VaultConfig(**dict(obj))


def load_router_settings(path: Path | str) -> RouterSettings:
    return settings_from_mapping(_read_yaml(path).get("router"))


def load_vault_config(path: Path | str) -> VaultConfig:
    obj = _read_yaml(path).get("vault")
    if obj is None:
        raise ValueError(f"{path}: no vault section")
    return vault_from_mapping(obj)


def load_config_file(path: Path | str) -> Tuple[RouterSettings, Optional[VaultConfig]]:
    obj = _read_yaml(path)
    vault_obj = obj.get("vault")
    vault = vault_from_mapping(vault_obj) if vault_obj is not None else None
    return settings_from_mapping(obj.get("router")), vault
