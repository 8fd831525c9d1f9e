from .participant import AttackerPayload, AttributesPayload

__all__ = [
    "AttackerPayload",
    "AttributesPayload",
]
