from __future__ import annotations

from typing import Callable, Dict

HOST_FACTORIES: Dict[str, Callable] = {}


def register_host(name: str):
    def _decorator(fn: Callable):
        HOST_FACTORIES[name] = fn
        return fn

    return _decorator


def get_host(name: str):
    if name not in HOST_FACTORIES:
        raise KeyError(f"chart host not found: {name}")
    return HOST_FACTORIES[name]


def load_default_hosts() -> None:
    from histplot.hosts import plotly_host  # noqa: F401
