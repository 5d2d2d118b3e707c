"""Infrastructure layer — cross-cutting concerns for the control bridge.

Modules:
    log_setup   Root logger configuration (stderr, one format).
    retry       Exponential backoff retry decorator.
    metrics     Prometheus metrics registry.
"""
