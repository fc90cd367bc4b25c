# src/multi_lora/frozen.py
from typing import Optional

import torch
import torch.nn as nn
import torch.nn.functional as F

from .errors import ShapeMismatchError


class LinearLike(nn.Module):
    """
    Any layer that is linear-like.
    Subclasses expose the base weight/bias and accept an optional scaling tensor
    in forward, so model code can call every projection the same way.
    Subclasses must override weight, bias and forward.
    """

    @property
    def weight(self) -> torch.Tensor:
        raise NotImplementedError

    @property
    def bias(self) -> Optional[torch.Tensor]:
        raise NotImplementedError

    @property
    def shape(self) -> torch.Size:
        return self.weight.shape

    @property
    def in_features(self) -> int:
        return self.weight.shape[1]

    @property
    def out_features(self) -> int:
        return self.weight.shape[0]

    def _check_input(self, x: torch.Tensor) -> None:
        if x.shape[-1] != self.in_features:
            raise ShapeMismatchError(
                f"Expected input with {self.in_features} features, got shape {tuple(x.shape)}."
            )

    def forward(self, x: torch.Tensor, scalings: Optional[torch.Tensor] = None) -> torch.Tensor:
        raise NotImplementedError


class FrozenLinear(LinearLike):
    """
    Wraps an nn.Linear that receives no adapters.
    Forward: x @ W^T + b. Scalings are accepted and ignored.
    """

    def __init__(self, base_linear: nn.Linear):
        super().__init__()
        if not isinstance(base_linear, nn.Linear):
            raise TypeError("FrozenLinear expects an nn.Linear as base_linear")

        self.base = base_linear
        for p in self.base.parameters():
            p.requires_grad = False

    @property
    def weight(self) -> torch.Tensor:
        return self.base.weight

    @property
    def bias(self) -> Optional[torch.Tensor]:
        return self.base.bias

    def forward(self, x: torch.Tensor, scalings: Optional[torch.Tensor] = None) -> torch.Tensor:
        self._check_input(x)
        return F.linear(x, self.base.weight, self.base.bias)

    def extra_repr(self) -> str:
        return f"in_features={self.in_features}, out_features={self.out_features}, bias={self.bias is not None}"
