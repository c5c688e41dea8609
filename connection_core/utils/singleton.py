"""Singleton metaclass for process-wide client instances."""

import threading
from typing import Any, Dict


class SingletonMeta(type):
    """
    Metaclass that keeps one instance per class.

    Thread-safe via double-checked locking.

    Example:
        class KeycloakManager(metaclass=SingletonMeta):
            ...

        assert KeycloakManager() is KeycloakManager()
    """

    _instances: Dict[type, Any] = {}
    _lock: threading.Lock = threading.Lock()

    def __call__(cls, *args: Any, **kwargs: Any) -> Any:
        if cls not in cls._instances:
            with cls._lock:
                if cls not in cls._instances:
                    cls._instances[cls] = super().__call__(*args, **kwargs)
        return cls._instances[cls]
