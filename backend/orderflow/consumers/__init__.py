from .worker import EventConsumer, is_transient

__all__ = ["EventConsumer", "is_transient"]
