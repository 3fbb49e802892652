"""Client certificate loading for secured RavenDB connections."""

from __future__ import annotations

import os
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from types import SimpleNamespace
from typing import Any

from raven_hosting.runtime.errors import CertificateLoadError, MissingDependencyError

_PEM_SUFFIXES = frozenset({".pem", ".crt"})


def _import_cryptography() -> Any:
    try:
        from cryptography import x509
        from cryptography.hazmat.primitives import serialization
        from cryptography.hazmat.primitives.serialization import pkcs12
    except ImportError as exc:  # pragma: no cover - depends on optional extras
        raise MissingDependencyError(
            "Client certificates require optional dependency 'cryptography'. "
            "Install with: pip install 'raven-hosting[ravendb]'"
        ) from exc

    return SimpleNamespace(serialization=serialization, pkcs12=pkcs12, x509=x509)


@dataclass(slots=True, frozen=True)
class ClientCertificate:
    """Private key plus certificate chain used for mutual TLS."""

    private_key: Any
    certificate: Any
    additional_certificates: tuple[Any, ...] = ()
    source: str | None = None

    def to_pem(self) -> bytes:
        crypto = _import_cryptography()
        serialization = crypto.serialization
        chunks = [
            self.private_key.private_bytes(
                serialization.Encoding.PEM,
                serialization.PrivateFormat.PKCS8,
                serialization.NoEncryption(),
            ),
            self.certificate.public_bytes(serialization.Encoding.PEM),
        ]
        chunks.extend(
            extra.public_bytes(serialization.Encoding.PEM) for extra in self.additional_certificates
        )
        return b"".join(chunks)

    def write_pem(self, path: Path | None = None) -> Path:
        """Write key and chain as PEM (the driver's certificate format) and return the path."""
        payload = self.to_pem()
        if path is None:
            handle, name = tempfile.mkstemp(prefix="raven-client-", suffix=".pem")
            with os.fdopen(handle, "wb") as stream:
                stream.write(payload)
            path = Path(name)
        else:
            path.write_bytes(payload)
        path.chmod(0o600)
        return path

    @contextmanager
    def pem_file(self) -> Iterator[Path]:
        """Temporary PEM file removed on exit."""
        path = self.write_pem()
        try:
            yield path
        finally:
            path.unlink(missing_ok=True)


def load_certificate(path: str | Path, password: str | None = None) -> ClientCertificate:
    """Load a PKCS#12 bundle (or a PEM key+certificate file) from ``path``."""
    crypto = _import_cryptography()
    certificate_path = Path(path)
    try:
        data = certificate_path.read_bytes()
    except OSError as exc:
        raise CertificateLoadError(str(certificate_path), exc.strerror or str(exc)) from exc

    password_bytes = password.encode() if password else None
    try:
        if certificate_path.suffix.lower() in _PEM_SUFFIXES:
            private_key = crypto.serialization.load_pem_private_key(data, password=password_bytes)
            certificate = crypto.x509.load_pem_x509_certificate(data)
            additional: tuple[Any, ...] = ()
        else:
            private_key, certificate, extra = crypto.pkcs12.load_key_and_certificates(
                data, password_bytes
            )
            additional = tuple(extra or ())
    except (ValueError, TypeError) as exc:
        raise CertificateLoadError(str(certificate_path), str(exc)) from exc

    if private_key is None or certificate is None:
        raise CertificateLoadError(
            str(certificate_path), "bundle must contain a private key and a certificate"
        )
    return ClientCertificate(
        private_key=private_key,
        certificate=certificate,
        additional_certificates=additional,
        source=str(certificate_path),
    )
