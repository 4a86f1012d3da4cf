from __future__ import annotations
from dataclasses import dataclass
import random
import time

@dataclass
class FaultConfig:
    delay_ms: int = 0           # delay before each telemetry send
    drop_rate: float = 0.0      # 0.0..1.0, telemetry silently dropped

    def apply_delay(self) -> None:
        if self.delay_ms > 0:
            time.sleep(self.delay_ms / 1000.0)

    def should_drop(self) -> bool:
        return self.drop_rate > 0 and random.random() < self.drop_rate
