from __future__ import annotations

from dataclasses import dataclass
import os
from typing import Callable, Sequence, TypeVar

from udpiface.errors import ConfigurationError

T = TypeVar("T")

NIL_TOKENS = ("", "nil", "none")


@dataclass(frozen=True)
class InterfaceSettings:
    hostname: str | None = None
    write_dest_port: int | None = None
    read_port: int | None = None
    write_src_port: int | None = None
    interface_address: str | None = None
    ttl: int = 128
    write_timeout: float | None = 10.0
    read_timeout: float | None = None
    bind_address: str | None = "0.0.0.0"


@dataclass(frozen=True)
class SimSettings:
    sim_host: str
    sim_cmd_port: int
    sim_tlm_port: int


def handle_nil(value: object) -> object | None:
    """Config files spell an absent value as nil/none/empty; map those to None."""
    if value is None:
        return None
    if isinstance(value, str) and value.strip().lower() in NIL_TOKENS:
        return None
    return value


def _optional(value: object, convert: Callable[[object], T]) -> T | None:
    value = handle_nil(value)
    if value is None:
        return None
    try:
        return convert(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"invalid interface parameter {value!r}: {e}") from e


_PARAM_ORDER: tuple[tuple[str, Callable[[object], object]], ...] = (
    ("hostname", str),
    ("write_dest_port", int),
    ("read_port", int),
    ("write_src_port", int),
    ("interface_address", str),
    ("ttl", int),
    ("write_timeout", float),
    ("read_timeout", float),
    ("bind_address", str),
)


def settings_from_params(params: Sequence[object]) -> InterfaceSettings:
    """
    Build settings from positional interface parameters as written on a
    config line: hostname, write_dest_port, read_port, write_src_port,
    interface_address, ttl, write_timeout, read_timeout, bind_address.
    Omitted trailing parameters keep their defaults.
    """
    if len(params) > len(_PARAM_ORDER):
        raise ConfigurationError(
            f"too many interface parameters: got {len(params)}, at most {len(_PARAM_ORDER)}"
        )

    values = {}
    for (field_name, convert), raw in zip(_PARAM_ORDER, params):
        values[field_name] = _optional(raw, convert)

    # ttl has no absent form; nil falls back to the default
    if values.get("ttl") is None:
        values.pop("ttl", None)
    return InterfaceSettings(**values)


def get_settings() -> InterfaceSettings:
    """
    Interface configuration from UDPIF_* environment variables.
    Unset (or nil) values keep the interface defaults.
    """
    defaults = InterfaceSettings()
    ttl = _optional(os.getenv("UDPIF_TTL"), int)
    return InterfaceSettings(
        hostname=_optional(os.getenv("UDPIF_HOSTNAME"), str),
        write_dest_port=_optional(os.getenv("UDPIF_WRITE_DEST_PORT"), int),
        read_port=_optional(os.getenv("UDPIF_READ_PORT"), int),
        write_src_port=_optional(os.getenv("UDPIF_WRITE_SRC_PORT"), int),
        interface_address=_optional(os.getenv("UDPIF_INTERFACE_ADDRESS"), str),
        ttl=defaults.ttl if ttl is None else ttl,
        write_timeout=_optional(os.getenv("UDPIF_WRITE_TIMEOUT", str(defaults.write_timeout)), float),
        read_timeout=_optional(os.getenv("UDPIF_READ_TIMEOUT"), float),
        bind_address=_optional(os.getenv("UDPIF_BIND_ADDRESS", defaults.bind_address), str),
    )


def get_sim_settings() -> SimSettings:
    return SimSettings(
        sim_host=os.getenv("SIM_HOST", "127.0.0.1"),
        sim_cmd_port=int(os.getenv("SIM_CMD_PORT", "9000")),
        sim_tlm_port=int(os.getenv("SIM_TLM_PORT", "9001")),
    )
