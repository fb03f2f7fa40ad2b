"""Resolution of the driver responsible for a request action."""

from typing import Any, Dict, List, Optional, Tuple

from reqcache.config.log import get_logger
from reqcache.drivers.interfaces import Driver, as_driver
from reqcache.exceptions import ConfigurationError, DriverNotFoundError

logger = get_logger(__name__)

DEFAULT_DRIVER = 'default'


class DriverRegistry:
    """Holds the configured drivers, either a single one or a name -> driver map."""

    def __init__(self, driver_config: Any):
        self.drivers: Dict[str, Driver] = {}
        self._load_drivers(driver_config)

    def _load_drivers(self, driver_config: Any):
        if driver_config is None:
            return

        if isinstance(driver_config, dict):
            for name, candidate in driver_config.items():
                self.drivers[name] = as_driver(candidate)
        else:
            self.drivers[DEFAULT_DRIVER] = as_driver(driver_config)

        logger.debug('Drivers loaded', drivers=list(self.drivers))

    def resolve(self, action: Any) -> Tuple[str, Driver]:
        """Return the name and driver for an action: ``meta['driver']``, else the default."""
        name = (action.meta or {}).get('driver') or DEFAULT_DRIVER
        driver = self.drivers.get(name)
        if driver is None:
            if name == DEFAULT_DRIVER:
                raise ConfigurationError(f"No default driver configured for action '{action.type}'")
            raise DriverNotFoundError(name, self.list_drivers())
        return name, driver

    def get_driver(self, name: str) -> Optional[Driver]:
        return self.drivers.get(name)

    def list_drivers(self) -> List[str]:
        return list(self.drivers.keys())

    async def close_all(self):
        """Close every distinct driver once."""
        closed = set()
        for driver in self.drivers.values():
            if id(driver) in closed:
                continue
            closed.add(id(driver))
            await driver.close()
