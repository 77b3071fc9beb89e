from marketplace_ops.config.settings import Settings, settings

__all__ = ["Settings", "settings"]
