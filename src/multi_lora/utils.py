# src/multi_lora/utils.py
from typing import List

import torch.nn as nn


def freeze_model(model: nn.Module):
    """Freeze all model parameters to disable gradient updates."""
    for p in model.parameters():
        p.requires_grad = False
    return model


def is_adapter_param(name: str) -> bool:
    return "lora_A" in name or "lora_B" in name


def mark_only_adapters_trainable(model: nn.Module):
    """Freeze everything except the LoRA factors."""
    for name, p in model.named_parameters():
        p.requires_grad = is_adapter_param(name)
    return model


def get_adapter_parameters(model: nn.Module) -> List[nn.Parameter]:
    """
    Return the trainable LoRA parameters, e.g. to hand to an optimizer:
    torch.optim.AdamW(get_adapter_parameters(model), lr=1e-4)
    """
    return [p for name, p in model.named_parameters() if is_adapter_param(name) and p.requires_grad]


def count_parameters(model: nn.Module):
    """
    Return a summary dict with total, trainable, and adapter parameters.
    """
    total = sum(p.numel() for p in model.parameters())
    trainable = sum(p.numel() for p in model.parameters() if p.requires_grad)

    adapter = 0
    for name, param in model.named_parameters():
        if param.requires_grad and is_adapter_param(name):
            adapter += param.numel()

    pct = 100.0 * adapter / total if total else 0.0
    return {
        "total_params": total,
        "trainable_params": trainable,
        "adapter_params": adapter,
        "adapter_pct_total": pct,
    }
