import logging
from fastapi import FastAPI, HTTPException, Request
from pydantic import BaseModel, Field

from services.device_sim.app.core.device import SimDevice
from udpiface.config.settings import get_sim_settings
from udpiface.errors import InterfaceError
from udpiface.interfaces.udp_interface import UdpInterface

logger = logging.getLogger(__name__)

app = FastAPI(title="Device Simulator", version="0.3.0")

class FaultsIn(BaseModel):
    delay_ms: int = Field(0, ge=0, le=5000)
    drop_rate: float = Field(0.0, ge=0.0, le=1.0)

class TelemetryIn(BaseModel):
    payload_hex: str

def _device(request: Request) -> SimDevice:
    return request.app.state.device

@app.on_event("startup")
def start_device():
    settings = get_sim_settings()
    # commands come in on SIM_CMD_PORT, telemetry goes out to SIM_TLM_PORT
    interface = UdpInterface(
        settings.sim_host,
        settings.sim_tlm_port,
        settings.sim_cmd_port,
        bind_address=settings.sim_host,
        name="DEVICE_SIM",
    )
    device = SimDevice(interface)
    device.start()
    app.state.device = device
    logger.info("device sim listening for commands on %s:%d", settings.sim_host, settings.sim_cmd_port)

@app.on_event("shutdown")
def stop_device():
    device = getattr(app.state, "device", None)
    if device:
        device.stop()

@app.get("/health")
def health(request: Request):
    device = _device(request)
    return {"status": "ok", "connected": device.interface.connected()}

@app.get("/status")
def status(request: Request):
    device = _device(request)
    return {
        "connected": device.interface.connected(),
        "reader_running": device.running,
        "interface": device.interface.stats(),
        "dropped": device.dropped,
        "faults": {
            "delay_ms": device.faults.delay_ms,
            "drop_rate": device.faults.drop_rate,
        },
    }

@app.get("/commands")
def commands(request: Request):
    received = _device(request).received()
    return {"count": len(received), "commands": [c.hex() for c in received]}

@app.post("/control/reset")
def reset(request: Request):
    _device(request).reset()
    return {"status": "reset"}

@app.post("/control/telemetry")
def send_telemetry(t: TelemetryIn, request: Request):
    try:
        payload = bytes.fromhex(t.payload_hex)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=f"payload_hex is not hex: {e}")
    try:
        sent = _device(request).send_telemetry(payload)
    except InterfaceError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except OSError as e:
        raise HTTPException(status_code=502, detail=f"udp send failed: {e}")
    return {"status": "sent" if sent else "dropped", "bytes": len(payload)}

@app.get("/control/faults")
def get_faults(request: Request):
    faults = _device(request).faults
    return {"delay_ms": faults.delay_ms, "drop_rate": faults.drop_rate}

@app.post("/control/faults")
def set_faults(f: FaultsIn, request: Request):
    faults = _device(request).faults
    faults.delay_ms = f.delay_ms
    faults.drop_rate = f.drop_rate
    return {"status": "faults_updated", "faults": f.model_dump()}

if __name__ == "__main__":
    import os
    import uvicorn
    uvicorn.run(
        app,
        host=os.getenv("SIM_HTTP_HOST", "127.0.0.1"),
        port=int(os.getenv("SIM_HTTP_PORT", "8000")),
        log_level="info",
        reload=False)
