# src/multi_lora/load_adapters.py

import os
import logging
from safetensors.torch import load_file

from .utils import is_adapter_param


def load_adapters_from_checkpoint(model,
                                  checkpoint_dir,
                                  logger: logging.Logger | None = None):
    """
    Load LoRA factor weights from <checkpoint_dir>/model.safetensors.
    Expects that the adapter layers have already been built (e.g. by inject_adapters()).
    """
    logger = logger or logging.getLogger(__name__)

    adapter_path = os.path.join(checkpoint_dir, "model.safetensors")
    if not os.path.exists(adapter_path):
        raise FileNotFoundError(f"No model.safetensors found in {checkpoint_dir}")

    logger.info("Loading adapter weights from %s", adapter_path)

    state = load_file(adapter_path, device="cpu")

    # keep only the LoRA factors
    adapter_state = {k: v for k, v in state.items() if is_adapter_param(k)}

    # detect model device + dtype
    param = next(model.parameters())
    adapter_state = {k: v.to(device=param.device, dtype=param.dtype) for k, v in adapter_state.items()}

    missing, unexpected = model.load_state_dict(adapter_state, strict=False)
    # base weights are expected to be missing here
    missing = [k for k in missing if is_adapter_param(k)]

    if missing:
        logger.warning("Missing keys (%s): %s", len(missing), missing[:5])
    if unexpected:
        logger.warning("Unexpected keys (%s): %s", len(unexpected), unexpected[:5])

    logger.info("Adapter weights loaded successfully (%d tensors).", len(adapter_state))
    return model
