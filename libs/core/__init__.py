__all__ = [
    "models",
    "logging",
]
