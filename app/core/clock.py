from __future__ import annotations
import time
from typing import Callable

# Any zero-argument callable returning epoch seconds.
Clock = Callable[[], float]

system_clock: Clock = time.time
