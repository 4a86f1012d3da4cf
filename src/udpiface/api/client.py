from __future__ import annotations
import httpx

from udpiface.utils.retry import RetryPolicy, with_retries

class SimApiClient:
    """HTTP control client for the device simulator."""

    def __init__(self, base_url: str, timeout_s: float = 2.0, client: httpx.Client | None = None):
        # an existing client (e.g. fastapi's TestClient) can be reused as-is
        self._owns_client = client is None
        self._client = client if client is not None else httpx.Client(base_url=base_url, timeout=timeout_s)

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def health(self) -> dict:
        r = self._client.get("/health")
        r.raise_for_status()
        return r.json()

    def status(self) -> dict:
        r = self._client.get("/status")
        r.raise_for_status()
        return r.json()

    def reset(self) -> dict:
        r = self._client.post("/control/reset")
        r.raise_for_status()
        return r.json()

    def commands(self) -> list[bytes]:
        r = self._client.get("/commands")
        r.raise_for_status()
        return [bytes.fromhex(c) for c in r.json()["commands"]]

    def send_telemetry(self, payload: bytes) -> dict:
        r = self._client.post("/control/telemetry", json={"payload_hex": payload.hex()})
        r.raise_for_status()
        return r.json()

    def get_faults(self) -> dict:
        r = self._client.get("/control/faults")
        r.raise_for_status()
        return r.json()

    def set_faults(self, delay_ms: int = 0, drop_rate: float = 0.0) -> dict:
        r = self._client.post("/control/faults", json={"delay_ms": delay_ms, "drop_rate": drop_rate})
        r.raise_for_status()
        return r.json()

    def wait_for_commands(self, count: int, policy: RetryPolicy | None = None) -> list[bytes]:
        """Poll until the simulator has recorded at least `count` commands."""
        if policy is None:
            policy = RetryPolicy(attempts=20, base_delay_s=0.02, max_delay_s=0.2)

        def check() -> list[bytes]:
            received = self.commands()
            if len(received) < count:
                raise TimeoutError(f"simulator has {len(received)} commands, expected {count}")
            return received

        return with_retries(check, policy)
