"""Persistence helpers for planning snapshots and trip currency rates.

The household's goals, profile and assets live in the hosted document
store; these JSON files hold a local snapshot of those documents so the
dashboard and scripts can run the planner offline.
"""

from __future__ import annotations

import copy
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping

from .config import PLANNING_FILE, RATES_FILE

logger = logging.getLogger(__name__)

DEFAULT_PLANNING_DATA: Dict[str, Any] = {
    'profile': {},
    'goals': [],
    'assets': [],
}


def _read_json(target: Path) -> Any:
    if not target.exists():
        return None
    try:
        with target.open('r', encoding='utf-8') as handle:
            return json.load(handle)
    except (json.JSONDecodeError, OSError) as exc:
        logger.warning("Could not read %s: %s", target, exc)
        return None


def _write_json(target: Path, payload: Any) -> None:
    target.parent.mkdir(parents=True, exist_ok=True)
    with target.open('w', encoding='utf-8') as handle:
        json.dump(payload, handle, indent=2, sort_keys=True, default=str)


def load_planning_data(path: Path | None = None) -> Dict[str, Any]:
    target = path or PLANNING_FILE
    data = _read_json(target)
    if not isinstance(data, dict):
        return copy.deepcopy(DEFAULT_PLANNING_DATA)

    profile = data.get('profile') or {}
    goals = data.get('goals') or []
    assets = data.get('assets') or []
    if not isinstance(profile, dict):
        profile = {}
    if not isinstance(goals, list):
        goals = []
    if not isinstance(assets, list):
        assets = []
    return {
        'profile': profile,
        'goals': [g for g in goals if isinstance(g, dict)],
        'assets': [a for a in assets if isinstance(a, dict)],
    }


def save_planning_data(
    profile: Mapping[str, Any],
    goals: List[Mapping[str, Any]],
    assets: List[Mapping[str, Any]],
    path: Path | None = None,
) -> None:
    payload = {
        'profile': dict(profile or {}),
        'goals': [dict(g) for g in goals or []],
        'assets': [dict(a) for a in assets or []],
    }
    _write_json(path or PLANNING_FILE, payload)


def load_rates(path: Path | None = None) -> Dict[str, float]:
    data = _read_json(path or RATES_FILE)
    if not isinstance(data, dict):
        return {}
    rates: Dict[str, float] = {}
    for key, value in data.items():
        try:
            rates[str(key)] = float(value)
        except (TypeError, ValueError):
            logger.warning("Ignoring non-numeric rate %r for %s", value, key)
            continue
    return rates


def save_rates(rates: Mapping[str, float], path: Path | None = None) -> None:
    _write_json(path or RATES_FILE, {k: float(v) for k, v in (rates or {}).items()})
