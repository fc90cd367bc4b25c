# src/multi_lora/scalings.py
"""
Selection of per-adapter scaling vectors.

A scaling tensor has shape [batch, seq, n_adapters], or [batch, seq, n_layers, n_adapters]
for the top-k variant where each adapter-bearing layer gets its own column block.
The helpers here pick one adapter's column (and one layer, for top-k) and reshape
it to [batch, seq, 1] so it broadcasts over the feature axis of an activation.
"""
from typing import Optional

import torch

from .errors import IndexOutOfRangeError, ShapeMismatchError


def _check_index(index: int, size: int, what: str) -> None:
    # negative indices are rejected rather than wrapped
    if not 0 <= index < size:
        raise IndexOutOfRangeError(f"{what} index {index} is out of range for axis of size {size}.")


def get_maybe_topk_scalings(scalings: torch.Tensor, layer: Optional[int]) -> torch.Tensor:
    """
    Reduce a top-k scaling tensor to the [batch, seq, n_adapters] slice for one layer.
    A 3D tensor is returned unchanged.
    """
    if scalings.dim() == 3:
        return scalings
    if scalings.dim() != 4:
        raise ShapeMismatchError(
            f"Scalings must be 3D [batch, seq, n_adapters] or 4D [batch, seq, n_layers, n_adapters], "
            f"got shape {tuple(scalings.shape)}."
        )
    if layer is None:
        raise ShapeMismatchError("Top-k (4D) scalings require a layer index.")
    _check_index(layer, scalings.shape[2], "Layer")
    return scalings[:, :, layer, :]


def select_scalings(
    scalings: torch.Tensor,
    adapter_index: int,
    layer_index: Optional[int] = None,
) -> torch.Tensor:
    """
    Return the scaling vector of one adapter as a [batch, seq, 1] tensor.

    Args:
        scalings: [batch, seq, n_adapters] or [batch, seq, n_layers, n_adapters].
        adapter_index: position of the adapter on the last axis.
        layer_index: position on the layer axis, only used for 4D scalings.
    """
    scalings = get_maybe_topk_scalings(scalings, layer_index)
    _check_index(adapter_index, scalings.shape[-1], "Adapter")
    return scalings[:, :, adapter_index].unsqueeze(-1)


def apply_scalings(
    x: torch.Tensor,
    scalings: torch.Tensor,
    adapter_index: int,
    layer_index: Optional[int] = None,
) -> torch.Tensor:
    """Broadcast-multiply x [batch, seq, features] by one adapter's scalings."""
    selected = select_scalings(scalings, adapter_index, layer_index)
    try:
        return x * selected.to(x.dtype)
    except RuntimeError as err:
        raise ShapeMismatchError(
            f"Cannot broadcast scalings of shape {tuple(selected.shape)} "
            f"against activations of shape {tuple(x.shape)}."
        ) from err
