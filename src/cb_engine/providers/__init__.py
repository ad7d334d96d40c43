from .remotive import RemotiveClient

__all__ = ["RemotiveClient"]
