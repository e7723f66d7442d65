"""Day/page state machine primitives and record serialization.

The state machine has three observable phases:

- no day started (``current_day == 0``),
- day in progress (``current_day > 0 and not day_complete``),
- day complete (``day_complete``), until the next ``start_new_day``.

`state_from_dict(state_to_dict(s)) == s` and
`vault_from_dict(vault_to_dict(v)) == v` for all valid records (tested).
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any, Mapping

from .errors import PageLimitExceededError
from .math import MAX_PAGES_PER_DAY, SECONDS_PER_DAY
from .types import DistributionState, VaultConfig

# Auto-derived from the dataclass field definitions (single source of truth).
STATE_VAR_NAMES: tuple[str, ...] = tuple(DistributionState.__dataclass_fields__)
VAULT_FIELD_NAMES: tuple[str, ...] = tuple(VaultConfig.__dataclass_fields__)

_NULLABLE_VAULT_FIELDS = frozenset({"daily_cap_lamports", "fee_position", "pool"})


def initial_state(vault_id: str) -> DistributionState:
    """Fresh state for a newly initialized vault: every counter zero."""
    return DistributionState(vault_id=vault_id)


def can_distribute(state: DistributionState, now: int) -> bool:
    """True once 24h (wall clock) have passed since the current day began."""
    return now >= state.last_distribution_ts + SECONDS_PER_DAY


def start_new_day(state: DistributionState, now: int) -> DistributionState:
    """Advance the day counter and reset every per-day field.

    `carry_over` is not per-day and survives.
    """
    return replace(
        state,
        current_day=state.current_day + 1,
        last_distribution_ts=now,
        current_page=0,
        pages_done_mask=0,
        pages_processed=0,
        day_complete=False,
        day_claimed_fees=0,
        day_investor_total=0,
        daily_distributed=0,
    )


def _page_bit(page: int) -> int:
    if page < 0 or page >= MAX_PAGES_PER_DAY:
        raise PageLimitExceededError(f"page must be in [0, {MAX_PAGES_PER_DAY}): {page}")
    return 1 << page


def is_page_done(state: DistributionState, page: int) -> bool:
    return (state.pages_done_mask & _page_bit(page)) != 0


def mark_page_done(state: DistributionState, page: int) -> DistributionState:
    return replace(state, pages_done_mask=state.pages_done_mask | _page_bit(page))


# -- Serialization -----------------------------------------------------------

def _reserved_to_hex(value: bytes) -> str:
    return "0x" + value.hex()


def _reserved_from_hex(value: Any, *, name: str) -> bytes:
    if not isinstance(value, str) or not value.startswith("0x"):
        raise TypeError(f"{name} must be a 0x-prefixed hex string")
    try:
        return bytes.fromhex(value[2:])
    except ValueError as exc:
        raise ValueError(f"{name} must be valid hex") from exc


def state_to_dict(state: DistributionState) -> dict[str, Any]:
    """Serialize a DistributionState to a plain JSON-safe dict."""
    out: dict[str, Any] = {name: getattr(state, name) for name in STATE_VAR_NAMES}
    out["reserved"] = _reserved_to_hex(state.reserved)
    return out


def state_from_dict(d: Mapping[str, Any]) -> DistributionState:
    """Deserialize a dict to a DistributionState. Raises KeyError on missing fields."""
    kwargs: dict[str, Any] = {}
    for name in STATE_VAR_NAMES:
        val = d[name]
        if name == "reserved":
            kwargs[name] = _reserved_from_hex(val, name=name)
        elif name == "vault_id":
            kwargs[name] = val
        elif isinstance(val, bool):
            kwargs[name] = val
        elif isinstance(val, int):
            kwargs[name] = int(val)
        else:
            raise TypeError(f"state var {name!r} must be bool|int, got {type(val).__name__}")
    return DistributionState(**kwargs)


def vault_to_dict(config: VaultConfig) -> dict[str, Any]:
    out: dict[str, Any] = {name: getattr(config, name) for name in VAULT_FIELD_NAMES}
    out["reserved"] = _reserved_to_hex(config.reserved)
    return out


def vault_from_dict(d: Mapping[str, Any]) -> VaultConfig:
    kwargs: dict[str, Any] = {}
    for name in VAULT_FIELD_NAMES:
        if name in _NULLABLE_VAULT_FIELDS:
            kwargs[name] = d.get(name)
        elif name == "reserved":
            kwargs[name] = _reserved_from_hex(d[name], name=name)
        else:
            kwargs[name] = d[name]
    return VaultConfig(**kwargs)
