from .settings import TransferConfig

__all__ = ["TransferConfig"]
