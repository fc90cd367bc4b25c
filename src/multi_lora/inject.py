import logging
from types import SimpleNamespace
from typing import Optional, Sequence, Tuple

import torch.nn as nn

from .adapter import AdapterLinear
from .config import AdapterConfig, check_homogeneous
from .factory import BuildContext, build_linear
from .frozen import FrozenLinear

logger = logging.getLogger(__name__)


def get_submodule(model: nn.Module, dotted_path: str):
    """
    Traverse a model by a dotted path (e.g., 'layers.16.mlp.down_proj')
    and return (parent_module, attribute_name, target_module).
    """
    parts = dotted_path.split(".")
    current = model
    for name in parts[:-1]:
        current = getattr(current, name)
    parent = current
    attr_name = parts[-1]
    target = getattr(parent, attr_name)
    return parent, attr_name, target


def inject_adapters(
    model: nn.Module,
    adapter_configs: Sequence[Tuple[str, AdapterConfig]],
    ctx: Optional[BuildContext] = None,
) -> SimpleNamespace:
    """
    Replace every nn.Linear in 'model' with the handle returned by build_linear.
    Targeted layers become AdapterLinear, the rest FrozenLinear; existing weights are kept.
    Layer indices follow module registration order.
    """
    check_homogeneous(adapter_configs)
    if ctx is None:
        ctx = BuildContext()

    # collect first, the module tree is mutated below
    linears = [
        (name, module)
        for name, module in model.named_modules()
        if isinstance(module, nn.Linear) and name
    ]
    # bases already inside a handle (every AdapterLinear holds a FrozenLinear)
    wrapped_bases = {id(m.base) for m in model.modules() if isinstance(m, FrozenLinear)}

    injected, frozen = [], []
    for path, target in linears:
        if id(target) in wrapped_bases:
            continue

        parent, name, _ = get_submodule(model, path)
        handle = build_linear(
            path,
            (target.in_features, target.out_features),
            adapter_configs,
            ctx,
            bias=target.bias is not None,
            base=target,
        )
        setattr(parent, name, handle)
        (injected if isinstance(handle, AdapterLinear) else frozen).append(path)

    logger.info("Injected %d adapters into %d layers (%d left frozen).",
                len(adapter_configs), len(injected), len(frozen))

    # Return the model and metadata (for logging/debug)
    return SimpleNamespace(model=model, injected_layers=injected, frozen_layers=frozen, context=ctx)
