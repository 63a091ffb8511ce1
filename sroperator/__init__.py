"""Building blocks of a special-resource operator: unstructured objects, state manifests, kernel affinity, readiness polling, event filtering and metrics."""

__version__ = "0.1.0"