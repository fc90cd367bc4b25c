# src/multi_lora/factory.py
"""
Construction entry point: decide per named module whether a linear projection
gets LoRA adapters or stays a plain frozen layer.
"""
import logging
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import torch.nn as nn

from .adapter import AdapterLinear
from .config import AdapterConfig, check_homogeneous
from .errors import ShapeMismatchError
from .frozen import FrozenLinear, LinearLike

logger = logging.getLogger(__name__)


@dataclass
class BuildContext:
    """
    State shared by every factory call of one model construction pass.
    Construction must run on a single thread; the context is not touched afterwards.
    """
    adapter_layer_count: int = 0


def module_key(module_name: str) -> str:
    """'model.layers.3.self_attn.q_proj' -> 'q_proj'"""
    return module_name.split(".")[-1]


def build_linear(
    module_name: str,
    base_dims: Tuple[int, int],
    adapter_configs: Sequence[Tuple[str, AdapterConfig]],
    ctx: BuildContext,
    bias: bool = True,
    base: Optional[nn.Linear] = None,
) -> LinearLike:
    """
    Build the linear-like handle for one module.

    Args:
        module_name: qualified module name; its last segment is matched against target_modules.
        base_dims: (in_features, out_features).
        adapter_configs: ordered (adapter_name, AdapterConfig) pairs, all with the same target_modules.
        ctx: construction context; its counter is incremented once if adapters are attached.
        bias: whether a freshly created base layer has a bias.
        base: existing nn.Linear to wrap. A new one is created when omitted.

    Returns:
        FrozenLinear when the module is not targeted, AdapterLinear otherwise.
    """
    in_features, out_features = base_dims
    if in_features <= 0 or out_features <= 0:
        raise ValueError(f"Layer dimensions must be positive, got {base_dims}")

    if base is None:
        base = nn.Linear(in_features, out_features, bias=bias)
    elif (base.in_features, base.out_features) != (in_features, out_features):
        raise ShapeMismatchError(
            f"Base layer for '{module_name}' is {base.in_features}x{base.out_features}, "
            f"expected {in_features}x{out_features}."
        )

    target_modules = check_homogeneous(adapter_configs)
    if module_key(module_name) not in target_modules:
        logger.debug("%s: not targeted, frozen", module_name)
        return FrozenLinear(base)

    layer = AdapterLinear(base, adapter_configs, layer_index=ctx.adapter_layer_count)
    ctx.adapter_layer_count += 1
    logger.debug(
        "%s: %d adapters attached as layer %d", module_name, layer.n_adapters, layer.layer_index
    )
    return layer


def linear(
    in_features: int,
    out_features: int,
    module_name: str,
    adapter_configs: Sequence[Tuple[str, AdapterConfig]],
    ctx: BuildContext,
    base: Optional[nn.Linear] = None,
) -> LinearLike:
    return build_linear(module_name, (in_features, out_features), adapter_configs, ctx, bias=True, base=base)


def linear_no_bias(
    in_features: int,
    out_features: int,
    module_name: str,
    adapter_configs: Sequence[Tuple[str, AdapterConfig]],
    ctx: BuildContext,
    base: Optional[nn.Linear] = None,
) -> LinearLike:
    return build_linear(module_name, (in_features, out_features), adapter_configs, ctx, bias=False, base=base)
