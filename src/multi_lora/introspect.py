# src/multi_lora/introspect.py
import torch.nn as nn

from .adapter import AdapterLinear
from .utils import count_parameters


def list_adapter_layers(model: nn.Module):
    """
    Return a list of tuples (name, module, param_count) for all AdapterLinear layers.
    """
    layers = []
    for name, module in model.named_modules():
        if isinstance(module, AdapterLinear):
            count = sum(p.numel() for p in module.adapters.parameters())
            layers.append((name, module, count))
    return layers


def print_adapter_summary(model: nn.Module):
    """Print a concise report of all adapter layers inside the model."""
    layers = list_adapter_layers(model)
    if not layers:
        print("No adapters found.")
        return

    print(f"{'Layer':50s} | {'Idx':>4s} | {'Params':>10s} | {'In':>6s} | {'Out':>6s} | Adapters (rank)")
    print("-" * 110)
    for name, module, count in layers:
        ranks = ", ".join(f"{n}({a.rank})" for n, a in module.adapters.items())
        print(f"{name:50s} | {module.layer_index:4d} | {count:10,d} | "
              f"{module.in_features:6d} | {module.out_features:6d} | {ranks}")
    print("-" * 110)
    total = sum(c for _, _, c in layers)
    print(f"Total adapter parameters: {total:,}")


def print_param_summary(model: nn.Module):
    """Pretty print parameter stats."""
    stats = count_parameters(model)
    print("Parameter Summary")
    print("-----------------")
    for k, v in stats.items():
        print(f"{k:20s}: {v:,}")
