"""Tests for client certificate loading."""

from __future__ import annotations

import datetime
import stat
from pathlib import Path
from typing import Any

import pytest

pytest.importorskip("cryptography")

from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.serialization import pkcs12
from cryptography.x509.oid import NameOID

from raven_hosting.hosting.application import HostApplicationBuilder
from raven_hosting.ravendb.certificates import ClientCertificate, load_certificate
from raven_hosting.ravendb.client import (
    DOCUMENT_STORE_SERVICE,
    DocumentStoreFactory,
    add_ravendb_client,
)
from raven_hosting.ravendb.settings import ClientSettings
from raven_hosting.runtime.errors import CertificateLoadError


def _self_signed() -> tuple[Any, Any]:
    key = ec.generate_private_key(ec.SECP256R1())
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, "raven-client")])
    now = datetime.datetime.now(datetime.UTC)
    certificate = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - datetime.timedelta(minutes=5))
        .not_valid_after(now + datetime.timedelta(days=1))
        .sign(key, hashes.SHA256())
    )
    return key, certificate


@pytest.fixture()
def pfx_path(tmp_path: Path) -> Path:
    key, certificate = _self_signed()
    payload = pkcs12.serialize_key_and_certificates(
        b"raven-client",
        key,
        certificate,
        None,
        serialization.BestAvailableEncryption(b"secret"),
    )
    path = tmp_path / "client.pfx"
    path.write_bytes(payload)
    return path


@pytest.fixture()
def pem_path(tmp_path: Path) -> Path:
    key, certificate = _self_signed()
    path = tmp_path / "client.pem"
    path.write_bytes(
        key.private_bytes(
            serialization.Encoding.PEM,
            serialization.PrivateFormat.PKCS8,
            serialization.NoEncryption(),
        )
        + certificate.public_bytes(serialization.Encoding.PEM)
    )
    return path


class TestLoadCertificate:
    def test_loads_pkcs12_bundle(self, pfx_path: Path) -> None:
        loaded = load_certificate(pfx_path, "secret")

        assert isinstance(loaded, ClientCertificate)
        assert loaded.source == str(pfx_path)
        assert loaded.additional_certificates == ()

    def test_loads_pem_file(self, pem_path: Path) -> None:
        loaded = load_certificate(pem_path)

        assert loaded.certificate.subject.rfc4514_string() == "CN=raven-client"

    def test_wrong_password(self, pfx_path: Path) -> None:
        with pytest.raises(CertificateLoadError) as exc_info:
            load_certificate(pfx_path, "wrong")

        assert exc_info.value.path == str(pfx_path)

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(CertificateLoadError):
            load_certificate(tmp_path / "missing.pfx")

    def test_garbage_bundle(self, tmp_path: Path) -> None:
        path = tmp_path / "client.pfx"
        path.write_bytes(b"not a certificate")

        with pytest.raises(CertificateLoadError):
            load_certificate(path)


class TestClientCertificate:
    def test_write_pem_is_private(self, pfx_path: Path, tmp_path: Path) -> None:
        loaded = load_certificate(pfx_path, "secret")

        path = loaded.write_pem(tmp_path / "out.pem")

        assert stat.S_IMODE(path.stat().st_mode) == 0o600
        assert load_certificate(path).certificate == loaded.certificate

    def test_pem_file_is_removed_on_exit(self, pfx_path: Path) -> None:
        loaded = load_certificate(pfx_path, "secret")

        with loaded.pem_file() as path:
            assert b"BEGIN CERTIFICATE" in path.read_bytes()

        assert not path.exists()


class TestSecuredClient:
    def test_https_client_gets_certificate_pem(self, fake_raven: Any, pfx_path: Path) -> None:
        builder = HostApplicationBuilder()

        add_ravendb_client(
            builder,
            ClientSettings(
                urls=("https://a.example.run",),
                database_name="Orders",
                certificate_path=pfx_path,
                certificate_password="secret",
            ),
        )

        store = builder.services.get(DOCUMENT_STORE_SERVICE)
        assert store.certificate_pem_path is not None
        pem = Path(store.certificate_pem_path)
        assert b"PRIVATE KEY" in pem.read_bytes()
        pem.unlink()

    def test_failed_initialization_removes_certificate_pem(
        self, fake_raven: Any, pfx_path: Path
    ) -> None:
        fake_raven.error = ConnectionRefusedError("connection refused")
        settings = ClientSettings(
            urls=("https://a.example.run",),
            database_name="Orders",
            create_database_if_missing=True,
            certificate=load_certificate(pfx_path, "secret"),
        )

        with pytest.raises(ConnectionRefusedError):
            add_ravendb_client(HostApplicationBuilder(), settings)

        written = fake_raven.stores[-1].certificate_pem_path
        assert written is not None
        assert not Path(written).exists()

    def test_factory_close_removes_certificate_pem(self, fake_raven: Any, pfx_path: Path) -> None:
        factory = DocumentStoreFactory(
            ClientSettings(
                urls=("https://a.example.run",),
                certificate=load_certificate(pfx_path, "secret"),
            )
        )

        store = factory.create()
        pem = Path(store.certificate_pem_path)
        assert pem.exists()

        factory.close()

        assert not pem.exists()
        assert factory.certificate_file is None
        factory.close()

    def test_settings_load_certificate_lazily(self, pfx_path: Path) -> None:
        settings = ClientSettings(
            urls=("https://a.example.run",),
            certificate_path=pfx_path,
            certificate_password="secret",
        )

        assert settings.get_certificate() is not None

    def test_preloaded_certificate_is_used_as_is(self, pfx_path: Path) -> None:
        loaded = load_certificate(pfx_path, "secret")

        settings = ClientSettings(urls=("https://a.example.run",), certificate=loaded)

        assert settings.get_certificate() is loaded
