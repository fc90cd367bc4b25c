# src/multi_lora/config_io.py
import yaml
import os
from typing import Any, Dict, List, Tuple

from .config import AdapterConfig

NUMERIC_KEYS = ["alpha", "lora_alpha", "dropout", "lora_dropout", "rank", "r"]


def load_yaml_config(path: str) -> Dict[str, Any]:
    """
    Load a YAML config file into a Python dict.
    """
    if not os.path.exists(path):
        raise FileNotFoundError(f"Config file not found: {path}")
    with open(path, "r") as f:
        cfg = yaml.safe_load(f)

    if cfg is None:
        raise ValueError(f"YAML config file {path} is empty or invalid.")

    return _sanitize_numeric(cfg)


def _to_number(value: str):
    try:
        # convert scientific notation or numeric strings
        return float(value) if "." in value or "e" in value.lower() else int(value)
    except ValueError:
        return value  # leave as string if truly non-numeric


def _sanitize_numeric(cfg: Dict[str, Any]) -> Dict[str, Any]:
    # only numeric keys; names like target_modules stay strings
    for key in NUMERIC_KEYS:
        if key in cfg and isinstance(cfg[key], str):
            cfg[key] = _to_number(cfg[key])
    return cfg


def adapter_configs_from_dict(cfg: Dict[str, Any]) -> List[Tuple[str, AdapterConfig]]:
    """
    Turn a mapping like

        target_modules: [q_proj, v_proj]   # optional, shared default
        adapters:
          math: {r: 8, lora_alpha: 16}
          code: {r: 4, lora_alpha: 8, lora_dropout: 0.05}

    into ordered (adapter_name, AdapterConfig) pairs. File order is kept.
    """
    adapters = cfg.get("adapters")
    if not adapters:
        raise ValueError("Config has no 'adapters' section.")

    shared_targets = cfg.get("target_modules")
    pairs = []
    for name, acfg in adapters.items():
        acfg = _sanitize_numeric(dict(acfg or {}))
        if "target_modules" not in acfg and shared_targets is not None:
            acfg["target_modules"] = shared_targets
        pairs.append((str(name), AdapterConfig.from_dict(acfg)))
    return pairs


def load_adapter_configs(path: str) -> List[Tuple[str, AdapterConfig]]:
    """Load ordered adapter configs from a YAML file."""
    return adapter_configs_from_dict(load_yaml_config(path))
