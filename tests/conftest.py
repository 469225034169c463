import ipaddress
from datetime import datetime, timedelta, timezone

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID


def build_certificate(
    common_name="example.com",
    sans=("example.com", "*.example.com"),
    ips=("127.0.0.1",),
    not_before=None,
    not_after=None,
    key=None,
):
    """Self-signed certificate and its private key."""
    now = datetime.now(timezone.utc)
    key = key or ec.generate_private_key(ec.SECP256R1())
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])

    builder = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(not_before or now - timedelta(days=1))
        .not_valid_after(not_after or now + timedelta(days=90))
    )
    alt_names = [x509.DNSName(san) for san in sans]
    alt_names += [x509.IPAddress(ipaddress.ip_address(ip)) for ip in ips]
    if alt_names:
        builder = builder.add_extension(x509.SubjectAlternativeName(alt_names), critical=False)

    return builder.sign(key, hashes.SHA256()), key


@pytest.fixture
def make_certificate():
    return build_certificate


@pytest.fixture
def certificate():
    cert, _ = build_certificate()
    return cert


@pytest.fixture
def cert_files(tmp_path):
    cert, key = build_certificate()
    cert_path = tmp_path / "cert.pem"
    key_path = tmp_path / "key.pem"
    cert_path.write_bytes(cert.public_bytes(serialization.Encoding.PEM))
    key_path.write_bytes(key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.PKCS8,
        serialization.NoEncryption(),
    ))
    return cert_path, key_path
