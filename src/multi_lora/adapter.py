# src/multi_lora/adapter.py
import math
from typing import List, Optional, Sequence, Tuple

import torch
import torch.nn as nn

from .config import AdapterConfig
from .errors import ShapeMismatchError
from .frozen import FrozenLinear, LinearLike
from .scalings import apply_scalings


class LoRAAdapter(nn.Module):
    """
    A single low-rank factor pair: ΔW = B @ A, scaled by alpha / rank.
    A: [rank, in_features], B: [out_features, rank].
    """
    def __init__(self, in_features: int, out_features: int, config: AdapterConfig):
        super().__init__()
        self.rank = config.rank
        self.alpha = config.alpha
        self.scaling = config.scaling
        self.dropout = nn.Dropout(config.dropout) if config.dropout else nn.Identity()

        self.lora_A = nn.Parameter(torch.zeros(config.rank, in_features))
        self.lora_B = nn.Parameter(torch.zeros(out_features, config.rank))

        # LoRA initialization: small A, zero B so we start as a no-op.
        nn.init.kaiming_uniform_(self.lora_A, a=math.sqrt(5))
        nn.init.zeros_(self.lora_B)

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        # dropout only acts in training mode
        z = self.dropout(x) @ self.lora_A.t()
        z = z @ self.lora_B.t()
        return z * self.scaling


class AdapterLinear(LinearLike):
    """
    Wraps a frozen nn.Linear with any number of LoRA adapters whose contributions
    are weighted per position by a scaling tensor.

    Forward: base(x) + sum_i scalings[..., i] * adapter_i(x), summed in registration order.

    Args:
        base_linear: the pretrained projection; its parameters are frozen.
        adapter_configs: ordered (adapter_name, AdapterConfig) pairs.
        layer_index: index of this layer among all adapter-bearing layers of the model,
            used to pick the layer slice of top-k scalings.
    """

    def __init__(
        self,
        base_linear: nn.Linear,
        adapter_configs: Sequence[Tuple[str, AdapterConfig]],
        layer_index: int = 0,
    ):
        super().__init__()
        if not adapter_configs:
            raise ValueError("AdapterLinear needs at least one adapter config.")

        self.base = FrozenLinear(base_linear)
        self.layer_index = layer_index

        self.adapters = nn.ModuleDict()
        for name, cfg in adapter_configs:
            if name in self.adapters:
                raise ValueError(f"Duplicate adapter name '{name}'.")
            self.adapters[name] = LoRAAdapter(
                in_features=base_linear.in_features,
                out_features=base_linear.out_features,
                config=cfg,
            )

        # keep the new factors on the base layer's device/dtype
        self.adapters.to(device=base_linear.weight.device, dtype=base_linear.weight.dtype)

    @property
    def weight(self) -> torch.Tensor:
        return self.base.weight

    @property
    def bias(self) -> Optional[torch.Tensor]:
        return self.base.bias

    @property
    def adapter_names(self) -> List[str]:
        return list(self.adapters.keys())

    @property
    def n_adapters(self) -> int:
        return len(self.adapters)

    def forward(self, x: torch.Tensor, scalings: Optional[torch.Tensor] = None) -> torch.Tensor:
        """
        Args:
            x: [batch, seq, in_features] input.
            scalings: [batch, seq, n_adapters] or [batch, seq, n_layers, n_adapters].
                If None, every adapter contributes with unit scaling.

        Returns:
            [batch, seq, out_features] output.
        """
        self._check_input(x)
        if scalings is not None:
            self._check_scalings(x, scalings)

        result = self.base(x)
        for i, adapter in enumerate(self.adapters.values()):
            delta = adapter(x)
            if scalings is not None:
                delta = apply_scalings(delta, scalings, i, self.layer_index)
            result = result + delta
        return result

    def _check_scalings(self, x: torch.Tensor, scalings: torch.Tensor) -> None:
        # scalings must not broadcast the output to a new shape
        if x.dim() != 3:
            raise ShapeMismatchError(
                f"Scaled forward expects a [batch, seq, features] input, got shape {tuple(x.shape)}."
            )
        if tuple(scalings.shape[:2]) != tuple(x.shape[:2]):
            raise ShapeMismatchError(
                f"Scalings of shape {tuple(scalings.shape)} do not match input batch/seq {tuple(x.shape[:2])}."
            )
        if scalings.shape[-1] != self.n_adapters:
            raise ShapeMismatchError(
                f"Scalings carry {scalings.shape[-1]} adapters but this layer has {self.n_adapters}."
            )

    def extra_repr(self) -> str:
        return f"layer_index={self.layer_index}, adapters={self.adapter_names}"
