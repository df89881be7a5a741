"""
Serialization helpers for observation topologies.

Provides lossless JSON/YAML round-trip via intermediate dict representation.
Rule lists are not serialized here; they persist as their text form
(see telspec.selection.format_rule_list).

Document layout:
    name: "3C273"
    subarrays:
      - stations: [BR, FD, HN]
        baselines: [[0, 1], [0, 2], [1, 2]]
      - stations: [MK, SC]            # baselines omitted: fully connected
    metadata: {}
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Union

import yaml

from telspec.errors import TopologyError
from telspec.model import Baseline, Observation, Station, Subarray

logger = logging.getLogger(__name__)


def subarray_to_dict(sub: Subarray) -> Dict[str, Any]:
    return {
        "stations": [s.name for s in sub.stations],
        "baselines": [[b.station_a, b.station_b] for b in sub.baselines],
    }


def subarray_from_dict(d: Dict[str, Any]) -> Subarray:
    names = [str(n) for n in d.get("stations", [])]
    if "baselines" not in d:
        return Subarray.fully_connected(names)
    try:
        baselines = [Baseline(int(a), int(b)) for a, b in d["baselines"]]
    except (TypeError, ValueError) as exc:
        raise TopologyError(f"Malformed baseline list: {d['baselines']!r}") from exc
    return Subarray(stations=[Station(name=n) for n in names], baselines=baselines)


def observation_to_dict(ob: Observation) -> Dict[str, Any]:
    return {
        "name": ob.name,
        "subarrays": [subarray_to_dict(sub) for sub in ob.subarrays],
        "metadata": ob.metadata,
    }


def observation_from_dict(d: Dict[str, Any]) -> Observation:
    if not isinstance(d, dict):
        raise TopologyError(f"Expected a mapping, got {type(d).__name__}")
    return Observation(
        name=d.get("name", ""),
        subarrays=[subarray_from_dict(sub) for sub in d.get("subarrays", [])],
        metadata=d.get("metadata") or {},
    )


def observation_to_json(ob: Observation) -> str:
    return json.dumps(observation_to_dict(ob), sort_keys=True)


def observation_from_json(s: str) -> Observation:
    d = json.loads(s)
    return observation_from_dict(d)


def observation_to_yaml(ob: Observation) -> str:
    return yaml.safe_dump(observation_to_dict(ob))


def observation_from_yaml(s: str) -> Observation:
    d = yaml.safe_load(s)
    return observation_from_dict(d)


def load_observation(path: Union[str, Path]) -> Observation:
    """
    Read an observation topology file.

    Files ending in .json are read as JSON, anything else as YAML.
    """
    path = Path(path)
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() == ".json":
        ob = observation_from_json(text)
    else:
        ob = observation_from_yaml(text)
    logger.debug("Loaded observation '%s' with %d sub-arrays from %s",
                 ob.name, ob.subarray_count(), path)
    return ob


def save_observation(ob: Observation, path: Union[str, Path]) -> None:
    path = Path(path)
    if path.suffix.lower() == ".json":
        text = observation_to_json(ob)
    else:
        text = observation_to_yaml(ob)
    path.write_text(text, encoding="utf-8")
