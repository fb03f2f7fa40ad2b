from .httpx_driver import HttpxDriver, map_httpx_exception
from .interfaces import CallableDriver, Driver, as_driver
from .registry import DEFAULT_DRIVER, DriverRegistry

__all__ = ['Driver', 'CallableDriver', 'as_driver', 'DriverRegistry', 'DEFAULT_DRIVER', 'HttpxDriver', 'map_httpx_exception']
