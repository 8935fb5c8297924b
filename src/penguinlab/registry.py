# src/penguinlab/registry.py
from __future__ import annotations
from typing import Any, Callable, TypeVar

from .datasets.base import Dataset

T = TypeVar("T")

# ---------- Registries ----------
_DATASETS: dict[str, Callable[..., Dataset]] = {}

# ---------- Dataset API ----------
def register_dataset(name: str) -> Callable[[T], T]:
    """Register a dataset factory (usually the class itself) under `name`."""
    def deco(factory: T) -> T:
        _DATASETS[name] = factory  # type: ignore[assignment]
        return factory
    return deco

def create_dataset(name: str, **kw: Any) -> Dataset:
    """Instantiate the dataset registered under `name` with keyword params."""
    if name not in _DATASETS:
        raise KeyError(f"Unknown dataset '{name}'. Available: {available_datasets()}")
    return _DATASETS[name](**kw)

def available_datasets() -> list[str]:
    return sorted(_DATASETS)
