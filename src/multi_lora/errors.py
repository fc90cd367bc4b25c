# src/multi_lora/errors.py


class AdapterError(Exception):
    """Base class for errors raised while building or running adapter layers."""


class ConfigMismatchError(AdapterError, ValueError):
    """Adapters supplied for the same layer disagree on their target modules."""


class ShapeMismatchError(AdapterError, ValueError):
    """Tensor ranks or sizes are incompatible with the layer or scaling tensor."""


class IndexOutOfRangeError(AdapterError, IndexError):
    """An adapter or layer index falls outside the scaling tensor's bounds."""
