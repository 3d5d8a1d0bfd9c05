from .loader import ConfigLoader, get_config, load_config, reset_config

__all__ = ["ConfigLoader", "get_config", "load_config", "reset_config"]
