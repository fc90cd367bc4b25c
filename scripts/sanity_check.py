# scripts/sanity_check.py

import torch
import torch.nn as nn
from multi_lora.config import AdapterConfig
from multi_lora.inject import inject_adapters
from multi_lora.introspect import print_adapter_summary, print_param_summary


# ------------------------------------------------------------
# toy model: one attention-like block
# ------------------------------------------------------------
class Block(nn.Module):
    def __init__(self, dim=32):
        super().__init__()
        self.q_proj = nn.Linear(dim, dim, bias=False)
        self.v_proj = nn.Linear(dim, dim, bias=False)
        self.down_proj = nn.Linear(dim, dim)

    def forward(self, x, scalings=None):
        h = self.q_proj(x, scalings) + self.v_proj(x, scalings)
        return self.down_proj(torch.relu(h), scalings)


torch.manual_seed(0)
model = nn.ModuleList([Block() for _ in range(2)])
x = torch.randn(2, 5, 32)


def run(model, x, scalings=None):
    for block in model:
        x = block(x, scalings)
    return x


# ------------------------------------------------------------
# baseline forward (plain nn.Linear takes no scalings, so call the layers directly)
# ------------------------------------------------------------
with torch.no_grad():
    h = x
    for block in model:
        h = block.down_proj(torch.relu(block.q_proj(h) + block.v_proj(h)))
    base_out = h


# ------------------------------------------------------------
# two adapters on q_proj / v_proj, different ranks
# ------------------------------------------------------------
targets = {"q_proj", "v_proj"}
adapters = [
    ("math", AdapterConfig(rank=8, alpha=16.0, target_modules=targets)),
    ("code", AdapterConfig(rank=4, alpha=8.0, dropout=0.05, target_modules=targets)),
]
res = inject_adapters(model, adapters)
model.eval()

print("\nInjected adapters:")
for name in res.injected_layers:
    print(" -", name)
print("Frozen:", ", ".join(res.frozen_layers))


# ------------------------------------------------------------
# top-k scalings: [batch, seq, n_layers, n_adapters]
# ------------------------------------------------------------
scalings = torch.rand(2, 5, res.context.adapter_layer_count, len(adapters))
with torch.no_grad():
    new_out = run(model, x, scalings)

# B is zero-initialised, so fresh adapters must not change the output
diff = (new_out - base_out).abs().max().item()
print(f"\nMax absolute difference after injection: {diff:.6e} (expected 0)")

print()
print_adapter_summary(model)
print()
print_param_summary(model)
