"""Serial port discovery utilities."""

from __future__ import annotations

import logging
import re
from typing import List, Tuple

from serial.tools import list_ports
from serial.tools.list_ports_common import ListPortInfo

logger = logging.getLogger(__name__)


class PortDiscovery:
    """Serial port discovery utility.

    The meter is reached either over Bluetooth SPP (``/dev/rfcomm*``) or a
    USB-to-serial adapter, so those are listed by default.
    """

    USB_MARKERS = ['USB', 'ACM', 'FTDI', 'CP210', 'CH340', 'PL2303', 'BLUETOOTH']
    DEVICE_PATTERN = re.compile(r'rfcomm|ttyUSB|ttyACM|cu\.usb|cu\.UM|COM\d+', re.I)

    @classmethod
    def get_ports(cls, show_all: bool = False) -> List[Tuple[str, str]]:
        """Get list of available serial ports.

        Args:
            show_all: If True, returns all ports. If False, only likely meter links.

        Returns:
            List of tuples (device_name, description)
        """
        result = []
        try:
            ports = list_ports.comports()
        except (TypeError, ValueError, OSError) as e:
            logger.warning("Error listing serial ports: %s", e)
            return result

        for port in ports:
            if show_all or cls._is_candidate(port):
                desc = port.description or port.hwid or 'Unknown'
                result.append((port.device, desc))
        return result

    @classmethod
    def _is_candidate(cls, port: ListPortInfo) -> bool:
        if getattr(port, 'vid', None) is not None:
            return True
        text = f"{port.description or ''} {port.hwid or ''}".upper()
        return any(m in text for m in cls.USB_MARKERS) or bool(cls.DEVICE_PATTERN.search(port.device))
