"""
Strategy factory for selecting the window strategy.
"""

from connection_core.storage.pagination.keyset import KeysetWindowStrategy
from connection_core.storage.pagination.offset import OffsetWindowStrategy
from connection_core.storage.pagination.protocol import WindowStrategy

_STRATEGIES: dict[str, type] = {
    KeysetWindowStrategy.name: KeysetWindowStrategy,
    OffsetWindowStrategy.name: OffsetWindowStrategy,
}


def select_strategy(name: str) -> WindowStrategy:
    """
    Build the window strategy registered under ``name``.

    Example:
        >>> select_strategy(app_settings.CURSOR_STRATEGY).name
        'keyset'

    Raises:
        ValueError: If no strategy has that name.
    """
    try:
        return _STRATEGIES[name]()
    except KeyError:
        raise ValueError(f"Unknown cursor strategy '{name}'")
