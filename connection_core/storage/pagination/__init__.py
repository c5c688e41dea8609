"""
Pagination window strategies.

Both strategies share the ``WindowStrategy`` protocol: parse the caller's
cursor (no store access), then fetch one window plus one look-ahead row
(``size + 1``).

Example:
    ```python
    from connection_core.storage.pagination import (
        resolve_page_request,
        select_strategy,
    )

    page = resolve_page_request(pagination, default_size=20)
    strategy = select_strategy("keyset")
    position = strategy.parse_cursor(plan, page.cursor)
    window = await strategy.fetch(session, plan, page, position, total)
    ```
"""

from connection_core.storage.pagination.cursor import (
    decode_cursor,
    decode_keyset_cursor,
    encode_cursor,
    encode_keyset_cursor,
)
from connection_core.storage.pagination.factory import select_strategy
from connection_core.storage.pagination.keyset import KeysetWindowStrategy
from connection_core.storage.pagination.offset import OffsetWindowStrategy
from connection_core.storage.pagination.protocol import WindowStrategy
from connection_core.storage.pagination.window import (
    PageRequest,
    Window,
    resolve_page_request,
)

__all__ = [
    "KeysetWindowStrategy",
    "OffsetWindowStrategy",
    "PageRequest",
    "Window",
    "WindowStrategy",
    "decode_cursor",
    "decode_keyset_cursor",
    "encode_cursor",
    "encode_keyset_cursor",
    "resolve_page_request",
    "select_strategy",
]
