from .config import ServiceConfig, load_config
from .provider import ProviderHandle, build_provider_handle

__all__ = ["ServiceConfig", "load_config", "ProviderHandle", "build_provider_handle"]
