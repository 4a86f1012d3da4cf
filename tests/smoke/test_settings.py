import pytest

from udpiface.config.settings import (
    InterfaceSettings,
    get_settings,
    get_sim_settings,
    handle_nil,
    settings_from_params,
)
from udpiface.errors import ConfigurationError

@pytest.mark.smoke
@pytest.mark.parametrize("value", [None, "", "nil", "NIL", "None", " none "])
def test_nil_tokens_become_none(value):
    assert handle_nil(value) is None

@pytest.mark.smoke
def test_real_values_pass_through():
    assert handle_nil("localhost") == "localhost"
    assert handle_nil(8080) == 8080

@pytest.mark.smoke
def test_params_from_config_line():
    s = settings_from_params(["localhost", "8080", "8081", "nil", "nil", "64", "5.0", "nil", "127.0.0.1"])
    assert s == InterfaceSettings(
        hostname="localhost",
        write_dest_port=8080,
        read_port=8081,
        write_src_port=None,
        interface_address=None,
        ttl=64,
        write_timeout=5.0,
        read_timeout=None,
        bind_address="127.0.0.1",
    )

@pytest.mark.smoke
def test_params_trailing_defaults_and_nil_ttl():
    s = settings_from_params(["127.0.0.1", "nil", "8081", "nil", "nil", "nil"])
    assert s.write_dest_port is None
    assert s.read_port == 8081
    assert s.ttl == 128
    assert s.write_timeout == 10.0
    assert s.bind_address == "0.0.0.0"

@pytest.mark.smoke
def test_params_rejects_bad_values():
    with pytest.raises(ConfigurationError):
        settings_from_params(["127.0.0.1", "eighty"])
    with pytest.raises(ConfigurationError):
        settings_from_params(["127.0.0.1"] + ["nil"] * 9)

@pytest.mark.smoke
def test_settings_from_environment(monkeypatch):
    monkeypatch.setenv("UDPIF_HOSTNAME", "LOCALHOST")
    monkeypatch.setenv("UDPIF_WRITE_DEST_PORT", "7000")
    monkeypatch.setenv("UDPIF_READ_PORT", "nil")
    monkeypatch.setenv("UDPIF_TTL", "4")
    monkeypatch.setenv("UDPIF_READ_TIMEOUT", "1.5")
    monkeypatch.delenv("UDPIF_WRITE_TIMEOUT", raising=False)
    monkeypatch.delenv("UDPIF_BIND_ADDRESS", raising=False)

    s = get_settings()
    assert s.hostname == "LOCALHOST"
    assert s.write_dest_port == 7000
    assert s.read_port is None
    assert s.ttl == 4
    assert s.read_timeout == 1.5
    assert s.write_timeout == 10.0
    assert s.bind_address == "0.0.0.0"

@pytest.mark.smoke
def test_sim_settings_defaults(monkeypatch):
    for var in ("SIM_HOST", "SIM_CMD_PORT", "SIM_TLM_PORT"):
        monkeypatch.delenv(var, raising=False)
    s = get_sim_settings()
    assert (s.sim_host, s.sim_cmd_port, s.sim_tlm_port) == ("127.0.0.1", 9000, 9001)

@pytest.mark.smoke
def test_ttl_from_environment_handles_nil_and_garbage(monkeypatch):
    monkeypatch.setenv("UDPIF_TTL", "nil")
    assert get_settings().ttl == 128

    monkeypatch.setenv("UDPIF_TTL", "lots")
    with pytest.raises(ConfigurationError):
        get_settings()
