"""Pytest fixtures for integration tests."""

import datetime
import ipaddress

import pytest

from tests.integration_tests.webhook_server import WebhookServer
from hypernode_admission.hypernodes import register_hypernode_hooks
from hypernode_admission.models import HyperNode
from hypernode_admission.registry import Registry
from hypernode_admission.store import InMemoryTopologyStore


@pytest.fixture(scope="session")
def webhook_certs(tmp_path_factory):
    """Generate self-signed certificates for webhook server."""
    from cryptography import x509
    from cryptography.x509.oid import NameOID
    from cryptography.hazmat.primitives import hashes
    from cryptography.hazmat.primitives.asymmetric import rsa
    from cryptography.hazmat.primitives import serialization

    cert_dir = tmp_path_factory.mktemp("certs")

    private_key = rsa.generate_private_key(
        public_exponent=65537,
        key_size=2048,
    )

    subject = issuer = x509.Name(
        [
            x509.NameAttribute(NameOID.ORGANIZATION_NAME, "HyperNode Admission Test"),
            x509.NameAttribute(NameOID.COMMON_NAME, "webhook-server"),
        ]
    )
    now = datetime.datetime.now(datetime.timezone.utc)

    cert = (
        x509.CertificateBuilder()
        .subject_name(subject)
        .issuer_name(issuer)
        .public_key(private_key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now)
        .not_valid_after(now + datetime.timedelta(days=1))
        .add_extension(
            x509.SubjectAlternativeName(
                [
                    x509.DNSName("localhost"),
                    x509.IPAddress(ipaddress.ip_address("127.0.0.1")),
                ]
            ),
            critical=False,
        )
        .sign(private_key, hashes.SHA256())
    )

    key_file = cert_dir / "server.key"
    cert_file = cert_dir / "server.crt"

    key_file.write_bytes(
        private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.TraditionalOpenSSL,
            encryption_algorithm=serialization.NoEncryption(),
        )
    )
    cert_file.write_bytes(cert.public_bytes(serialization.Encoding.PEM))

    return {"cert_file": str(cert_file), "key_file": str(key_file)}


@pytest.fixture(scope="session")
def topology_store():
    """Existing HyperNodes visible to the webhook."""
    return InMemoryTopologyStore([
        HyperNode(name="hypernode-0", tier="1"),
        HyperNode(name="hypernode-1", tier="2"),
        HyperNode(name="hypernode-0-new", tier="1"),
        HyperNode(name="hypernode-3", tier="3"),
    ])


@pytest.fixture(scope="session")
def webhook_server(webhook_certs, topology_store):
    """Start webhook server for tests."""
    registry = Registry()
    register_hypernode_hooks(topology_store, registry=registry)

    server = WebhookServer(
        registry=registry,
        cert_file=webhook_certs["cert_file"],
        key_file=webhook_certs["key_file"],
    )

    server.start()

    yield server

    server.stop()
