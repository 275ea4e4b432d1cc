"""示例协作者：定时器与 LED 闪烁执行单元"""

from .timers import ExpiryTimer, ManualClock, monotonic_ms
from .led_flasher import LED, LEDFlasher, GeneratorLEDFlasher, ON_MS, OFF_MS, FLASH_COUNT

__all__ = [
    "ExpiryTimer",
    "ManualClock",
    "monotonic_ms",
    "LED",
    "LEDFlasher",
    "GeneratorLEDFlasher",
    "ON_MS",
    "OFF_MS",
    "FLASH_COUNT",
]
