"""
kube-state keeps a live snapshot of Kubernetes objects rendered as Prometheus
metrics and serves it on scrape.

Objects are watched with one reflector per resource kind and namespace. Each
kind has a metrics store holding pre-rendered metric text per object, so a
scrape only concatenates text that already exists.
"""

__all__ = [
    "allow_deny",
    "builder",
    "collector",
    "exceptions",
    "metric",
    "objects",
    "reflector",
    "store",
    # Note this is exposed for CLI documentation, not to be used as a library
    "tool",
]
