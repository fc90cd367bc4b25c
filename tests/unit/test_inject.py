"""inject_adapters tests"""

import torch
import torch.nn as nn

from multi_lora.adapter import AdapterLinear
from multi_lora.factory import BuildContext
from multi_lora.frozen import FrozenLinear
from multi_lora.inject import get_submodule, inject_adapters


class Attention(nn.Module):
    def __init__(self, dim=6):
        super().__init__()
        self.q_proj = nn.Linear(dim, dim, bias=False)
        self.v_proj = nn.Linear(dim, dim, bias=False)
        self.o_proj = nn.Linear(dim, dim)

    def forward(self, x, scalings=None):
        return self.o_proj(self.q_proj(x, scalings) * self.v_proj(x, scalings), scalings)


class TinyModel(nn.Module):
    def __init__(self, n_layers=2):
        super().__init__()
        self.layers = nn.ModuleList([Attention() for _ in range(n_layers)])

    def forward(self, x, scalings=None):
        for layer in self.layers:
            x = layer(x, scalings)
        return x


def test_get_submodule():
    model = TinyModel()
    parent, name, target = get_submodule(model, "layers.1.v_proj")
    assert parent is model.layers[1]
    assert name == "v_proj"
    assert target is model.layers[1].v_proj


def test_inject_wraps_every_linear(adapter_configs):
    model = TinyModel()
    original_weight = model.layers[0].q_proj.weight

    res = inject_adapters(model, adapter_configs)

    assert res.injected_layers == ["layers.0.q_proj", "layers.0.v_proj", "layers.1.q_proj", "layers.1.v_proj"]
    assert res.frozen_layers == ["layers.0.o_proj", "layers.1.o_proj"]
    assert res.context.adapter_layer_count == 4
    assert isinstance(model.layers[0].o_proj, FrozenLinear)
    assert isinstance(model.layers[1].v_proj, AdapterLinear)
    assert model.layers[1].v_proj.layer_index == 3
    # existing weights are kept, not re-initialised
    assert model.layers[0].q_proj.weight is original_weight


def test_injected_model_matches_before_training(adapter_configs):
    model = TinyModel()
    x = torch.randn(2, 3, 6)
    with torch.no_grad():
        h = x
        for layer in model.layers:
            h = layer.o_proj(layer.q_proj(h) * layer.v_proj(h))

    inject_adapters(model, adapter_configs)
    model.eval()
    with torch.no_grad():
        out = model(x, torch.rand(2, 3, 4, 2))

    torch.testing.assert_close(out, h)


def test_inject_twice_is_idempotent(adapter_configs):
    model = TinyModel(n_layers=1)
    inject_adapters(model, adapter_configs)
    res = inject_adapters(model, adapter_configs)

    assert res.injected_layers == []
    assert res.frozen_layers == []
    assert isinstance(model.layers[0].q_proj.base, FrozenLinear)


def test_shared_context_continues_numbering(adapter_configs):
    ctx = BuildContext(adapter_layer_count=10)
    model = TinyModel(n_layers=1)
    inject_adapters(model, adapter_configs, ctx)

    assert model.layers[0].q_proj.layer_index == 10
    assert ctx.adapter_layer_count == 12
