import pytest

from callrelay import server
from callrelay.core.config import Settings
from callrelay.main import create_app


def test_validate_tls_credentials_missing_files(tmp_path) -> None:
    with pytest.raises(server.StartupError):
        server.validate_tls_credentials(str(tmp_path / "missing.crt"), str(tmp_path / "missing.key"))


def test_validate_tls_credentials_invalid_files(tmp_path) -> None:
    cert = tmp_path / "selfsigned.crt"
    key = tmp_path / "selfsigned.key"
    cert.write_text("not a certificate")
    key.write_text("not a key")

    with pytest.raises(server.StartupError):
        server.validate_tls_credentials(str(cert), str(key))


def test_build_servers_plaintext_only() -> None:
    config = Settings(https_enabled=False, http_port=9080)

    servers = server.build_servers(create_app(config=config), config)

    assert [s.config.port for s in servers] == [9080]


def test_both_listeners_share_one_app(monkeypatch) -> None:
    config = Settings(https_enabled=True, http_port=9080, https_port=9443)
    monkeypatch.setattr(server, "validate_tls_credentials", lambda certfile, keyfile: None)
    app = create_app(config=config)

    servers = server.build_servers(app, config)

    assert [s.config.port for s in servers] == [9080, 9443]
    assert all(s.config.app is app for s in servers)
    assert servers[1].config.ssl_certfile == config.ssl_certfile


def test_main_exits_nonzero_on_bad_credentials(monkeypatch, tmp_path) -> None:
    config = Settings(https_enabled=True, ssl_certfile=str(tmp_path / "nope.crt"), ssl_keyfile=str(tmp_path / "nope.key"))
    monkeypatch.setattr(server, "get_settings", lambda: config)

    def _never_serve(servers):
        raise AssertionError("should not start serving")

    monkeypatch.setattr(server, "serve", _never_serve)

    assert server.main() == 1


def test_build_servers_checks_tls_before_creating_listeners(tmp_path) -> None:
    config = Settings(https_enabled=True, ssl_certfile=str(tmp_path / "gone.crt"), ssl_keyfile=str(tmp_path / "gone.key"))

    with pytest.raises(server.StartupError):
        server.build_servers(create_app(config=config), config)
