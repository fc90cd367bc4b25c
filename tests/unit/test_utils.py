"""Parameter helpers and introspection tests"""

import torch.nn as nn

from multi_lora.inject import inject_adapters
from multi_lora.introspect import list_adapter_layers, print_adapter_summary
from multi_lora.utils import count_parameters, freeze_model, get_adapter_parameters, mark_only_adapters_trainable


def make_model(adapter_configs):
    model = nn.Sequential()
    model.add_module("q_proj", nn.Linear(6, 6))
    model.add_module("o_proj", nn.Linear(6, 6))
    inject_adapters(model, adapter_configs)
    return model


def test_count_parameters(adapter_configs):
    model = make_model(adapter_configs)
    stats = count_parameters(model)

    # math: rank 4, code: rank 2 -> (4 + 2) * (6 + 6)
    assert stats["adapter_params"] == 72
    assert stats["trainable_params"] == 72
    assert stats["total_params"] == 2 * (36 + 6) + 72


def test_freeze_and_mark_trainable(adapter_configs):
    model = make_model(adapter_configs)
    freeze_model(model)
    assert get_adapter_parameters(model) == []

    mark_only_adapters_trainable(model)
    assert len(get_adapter_parameters(model)) == 4
    assert not model.q_proj.weight.requires_grad


def test_list_adapter_layers(adapter_configs, capsys):
    model = make_model(adapter_configs)
    layers = list_adapter_layers(model)

    assert [(name, count) for name, _, count in layers] == [("q_proj", 72)]
    print_adapter_summary(model)
    out = capsys.readouterr().out
    assert "math(4)" in out
    assert "Total adapter parameters: 72" in out


def test_summary_without_adapters(capsys):
    print_adapter_summary(nn.Linear(2, 2))
    assert "No adapters found." in capsys.readouterr().out
