# src/multi_lora/config.py
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Optional, Sequence, Tuple

from .errors import ConfigMismatchError


@dataclass(frozen=True)
class AdapterConfig:
    rank: int = 8                      # r in LoRA
    alpha: float = 16.0                # scale of the low-rank update
    dropout: Optional[float] = None    # optional dropout on adapter path
    target_modules: FrozenSet[str] = field(default_factory=frozenset)  # final name segments, e.g. "q_proj"

    def __post_init__(self):
        # accept any iterable of names, store a frozenset
        object.__setattr__(self, "target_modules", frozenset(self.target_modules))
        if self.rank <= 0:
            raise ValueError("rank must be > 0")
        if self.alpha <= 0:
            raise ValueError("alpha must be > 0")
        if self.dropout is not None and not 0.0 <= self.dropout < 1.0:
            raise ValueError("dropout must be in [0, 1)")
        if not self.target_modules:
            raise ValueError("target_modules must not be empty")

    @property
    def scaling(self) -> float:
        return self.alpha / self.rank

    @classmethod
    def from_dict(cls, cfg: Dict[str, Any]) -> "AdapterConfig":
        """
        Build a config from a plain dict. Accepts the PEFT-style keys
        ('r', 'lora_alpha', 'lora_dropout') as well as 'rank', 'alpha', 'dropout'.
        Unknown keys are ignored.
        """
        rank = cfg.get("r", cfg.get("rank"))
        alpha = cfg.get("lora_alpha", cfg.get("alpha"))
        dropout = cfg.get("lora_dropout", cfg.get("dropout"))
        if rank is None or alpha is None:
            raise ValueError(f"Adapter config needs a rank and an alpha, got keys {sorted(cfg)}")
        targets = cfg.get("target_modules")
        if targets is None:
            targets = ()
        if isinstance(targets, (str, int)):
            targets = [targets]
        # YAML reads bare numeric names such as Sequential indices as ints
        targets = [str(t) for t in targets]
        return cls(
            rank=int(rank),
            alpha=float(alpha),
            dropout=None if dropout is None else float(dropout),
            target_modules=targets,
        )


def check_homogeneous(adapter_configs: Sequence[Tuple[str, AdapterConfig]]) -> FrozenSet[str]:
    """
    Ensure every adapter targets the same set of modules and return that set.
    Rank, alpha and dropout may differ between adapters.
    """
    if not adapter_configs:
        raise ValueError("At least one adapter config is required.")

    first_name, first = adapter_configs[0]
    for name, cfg in adapter_configs[1:]:
        if cfg.target_modules != first.target_modules:
            raise ConfigMismatchError(
                f"Expected all target modules to be the same: adapter '{name}' targets "
                f"{sorted(cfg.target_modules)}, adapter '{first_name}' targets "
                f"{sorted(first.target_modules)}."
            )
    return first.target_modules
