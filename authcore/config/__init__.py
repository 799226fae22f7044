from .model import AuthClientConfig, StorageKeys

__all__ = ["AuthClientConfig", "StorageKeys"]
