"""
Fee router record encoding for durable storage.

Goals:
- Deterministic JSON serialization of the two durable records
  (`VaultConfig`, `DistributionState`) for storage and audit hashing.
- Round-trippable into the functional-core types.
- Explicit versioning plus per-record `reserved` padding that is carried
  verbatim, so later fields can be added without a layout break.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Tuple

from ..core.fee_router.state import state_from_dict, state_to_dict, vault_from_dict, vault_to_dict
from ..core.fee_router.types import DistributionState, VaultConfig
from ..state.canonical import canonical_json_bytes, domain_sep_bytes, require_canonical_size, sha256_hex


ROUTER_SNAPSHOT_VERSION = 1


@dataclass(frozen=True)
class RouterSnapshot:
    """
    Deterministic, versioned snapshot of one vault's durable records.

    The commitment is *not* included inside `data` to avoid self-reference.
    """

    version: int
    data: Dict[str, Any]

    def canonical_bytes(self) -> bytes:
        return canonical_json_bytes(self.data)

    def commitment_bytes(self) -> bytes:
        payload = domain_sep_bytes("router_snapshot", version=self.version) + self.canonical_bytes()
        return hashlib.sha256(payload).digest()

    def commitment_hex(self) -> str:
        payload = domain_sep_bytes("router_snapshot", version=self.version) + self.canonical_bytes()
        return sha256_hex(payload)


def snapshot_from_records(
    config: VaultConfig,
    state: DistributionState,
    *,
    version: int = ROUTER_SNAPSHOT_VERSION,
) -> RouterSnapshot:
    if not isinstance(version, int) or isinstance(version, bool) or version <= 0:
        raise ValueError("version must be a positive int")
    if config.vault_id != state.vault_id:
        raise ValueError(f"record vault mismatch: {config.vault_id} != {state.vault_id}")
    data: Dict[str, Any] = {
        "version": int(version),
        "vault": vault_to_dict(config),
        "distribution": state_to_dict(state),
    }
    return RouterSnapshot(version=version, data=data)


def records_from_snapshot(
    snapshot: Mapping[str, Any],
    *,
    max_snapshot_bytes: int = 64_000,
) -> Tuple[VaultConfig, DistributionState]:
    if not isinstance(snapshot, Mapping):
        raise TypeError("snapshot must be a mapping")
    if not isinstance(max_snapshot_bytes, int) or isinstance(max_snapshot_bytes, bool) or max_snapshot_bytes <= 0:
        raise ValueError("max_snapshot_bytes must be a positive int")

    try:
        require_canonical_size(dict(snapshot), max_bytes=max_snapshot_bytes)
    except ValueError as exc:
        raise ValueError("snapshot too large") from exc

    version = snapshot.get("version")
    if not isinstance(version, int) or isinstance(version, bool) or version <= 0:
        raise ValueError("snapshot.version must be a positive int")
    if version != ROUTER_SNAPSHOT_VERSION:
        raise ValueError(f"unsupported snapshot version: {version}")

    vault_obj = snapshot.get("vault")
    if not isinstance(vault_obj, Mapping):
        raise TypeError("snapshot.vault must be an object")
    dist_obj = snapshot.get("distribution")
    if not isinstance(dist_obj, Mapping):
        raise TypeError("snapshot.distribution must be an object")

    try:
        config = vault_from_dict(vault_obj)
        state = state_from_dict(dist_obj)
    except KeyError as exc:
        raise ValueError(f"snapshot record missing field: {exc.args[0]}") from exc

    if config.vault_id != state.vault_id:
        raise ValueError("snapshot records belong to different vaults")
    return config, state


def encode_records(config: VaultConfig, state: DistributionState) -> bytes:
    return snapshot_from_records(config, state).canonical_bytes()


def decode_records(raw: bytes) -> Tuple[VaultConfig, DistributionState]:
    if not isinstance(raw, (bytes, bytearray)):
        raise TypeError("raw must be bytes")
    obj = json.loads(bytes(raw).decode("utf-8"))
    return records_from_snapshot(obj)
