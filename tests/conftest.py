"""pytest shared fixtures"""

import pytest
import torch
import torch.nn as nn

from multi_lora.config import AdapterConfig


TARGETS = frozenset({"q_proj", "v_proj"})


@pytest.fixture(autouse=True)
def seed():
    torch.manual_seed(0)


@pytest.fixture
def adapter_configs():
    """Two adapters on the same modules with different rank/alpha"""
    return [
        ("math", AdapterConfig(rank=4, alpha=8.0, target_modules=TARGETS)),
        ("code", AdapterConfig(rank=2, alpha=1.0, dropout=0.1, target_modules=TARGETS)),
    ]


@pytest.fixture
def base_linear():
    return nn.Linear(6, 5)
