import pkgutil
from importlib import import_module

from fastapi import APIRouter

from connection_core.api import http
from connection_core.logging import logger


def collect_subrouters() -> APIRouter:
    """
    Merge the ``router`` of every module in ``connection_core.api.http``.

    Adding an endpoint module is enough to expose it; nothing has to be
    registered by hand.
    """
    root = APIRouter()
    for module_info in pkgutil.iter_modules(http.__path__):
        module = import_module(f"{http.__name__}.{module_info.name}")
        root.include_router(module.router)
        logger.debug(f'Registered "{module_info.name}" routes')
    return root
