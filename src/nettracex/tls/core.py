"""
SSL/TLS certificate inspection.
"""

import asyncio
import socket
import ssl
from datetime import datetime, timezone

from cryptography import x509
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.x509.oid import NameOID

from nettracex.cancel import CancelSignal, guarded
from nettracex.errors import network_error
from nettracex.logging_config import Logger, NullLogger
from nettracex.models import SecurityLevel, SSLResult
from nettracex.validation import is_ip_literal

MIN_RSA_KEY_BITS = 2048
EXPIRY_WARNING_DAYS = 30

_INSECURE_MARKERS = ("expired", "not yet valid", "not valid for")


def _not_before(cert: x509.Certificate) -> datetime:
    return getattr(cert, "not_valid_before_utc", None) or cert.not_valid_before.replace(tzinfo=timezone.utc)


def _not_after(cert: x509.Certificate) -> datetime:
    return getattr(cert, "not_valid_after_utc", None) or cert.not_valid_after.replace(tzinfo=timezone.utc)


def extract_sans(cert: x509.Certificate) -> list[str]:
    """DNS names followed by IP addresses from the SAN extension."""
    try:
        ext = cert.extensions.get_extension_for_class(x509.SubjectAlternativeName)
    except x509.ExtensionNotFound:
        return []
    sans = list(ext.value.get_values_for_type(x509.DNSName))
    sans.extend(str(ip) for ip in ext.value.get_values_for_type(x509.IPAddress))
    return sans


def _common_names(cert: x509.Certificate) -> list[str]:
    return [str(attr.value) for attr in cert.subject.get_attributes_for_oid(NameOID.COMMON_NAME)]


def hostname_matches(host: str, names: list[str]) -> bool:
    """Match a host against certificate names, honouring left-most wildcards."""
    host = host.lower().rstrip(".")
    for name in names:
        name = name.lower().rstrip(".")
        if name == host:
            return True
        if name.startswith("*.") and not is_ip_literal(host):
            suffix = name[1:]
            head, _, rest = host.partition(".")
            if head and "." + rest == suffix:
                return True
    return False


def _uses_sha1(cert: x509.Certificate) -> bool:
    try:
        return isinstance(cert.signature_hash_algorithm, hashes.SHA1)
    except UnsupportedAlgorithm:
        return False


def _rsa_key_bits(cert: x509.Certificate) -> int | None:
    key = cert.public_key()
    if isinstance(key, rsa.RSAPublicKey):
        return key.key_size
    return None


def weak_crypto_issues(cert: x509.Certificate) -> list[str]:
    """Signature and key problems that make a certificate untrustworthy."""
    issues = []
    if _uses_sha1(cert):
        issues.append("certificate uses weak SHA-1 signature algorithm")
    bits = _rsa_key_bits(cert)
    if bits is not None and bits < MIN_RSA_KEY_BITS:
        issues.append(f"certificate uses weak RSA key size: {bits} bits")
    return issues


def certificate_warnings(cert: x509.Certificate, chain_length: int | None, now: datetime | None = None) -> list[str]:
    """Problems worth reporting that do not invalidate the certificate.

    chain_length is None when the TLS stack cannot report the served chain.
    """
    now = now or datetime.now(timezone.utc)
    warnings = []

    expiry = _not_after(cert)
    if now <= expiry:
        days = (expiry - now).days
        if days <= EXPIRY_WARNING_DAYS:
            warnings.append(f"certificate expires in {days} days")
    if chain_length == 1:
        warnings.append("certificate chain contains only one certificate")

    return warnings


def security_level(errors: list[str], warnings: list[str]) -> SecurityLevel:
    """Collapse validation errors and warnings into one assessment."""
    if any(marker in err for err in errors for marker in _INSECURE_MARKERS):
        return SecurityLevel.INSECURE
    if errors:
        return SecurityLevel.WEAK
    if warnings:
        return SecurityLevel.WARNING
    return SecurityLevel.SECURE


def security_recommendations(
    cert: x509.Certificate, chain_length: int | None, now: datetime | None = None,
) -> list[str]:
    now = now or datetime.now(timezone.utc)
    recommendations = []

    expiry = _not_after(cert)
    if now > expiry:
        recommendations.append("Certificate has expired - renew immediately")
    elif (expiry - now).days <= EXPIRY_WARNING_DAYS:
        recommendations.append("Renew certificate before expiry")

    if _uses_sha1(cert):
        recommendations.append("Upgrade to SHA-256 or higher signature algorithm")
    bits = _rsa_key_bits(cert)
    if bits is not None and bits < MIN_RSA_KEY_BITS:
        recommendations.append(f"Use RSA key size of {MIN_RSA_KEY_BITS} bits or higher")
    if cert.issuer == cert.subject:
        recommendations.append("Use a certificate from a trusted Certificate Authority")
    if chain_length == 1:
        recommendations.append("Ensure complete certificate chain is configured")

    return recommendations or ["Certificate configuration appears secure"]


def validate_certificate(cert: x509.Certificate, host: str, now: datetime | None = None) -> list[str]:
    """Human-readable problems with a leaf certificate."""
    now = now or datetime.now(timezone.utc)
    errors = []

    if now > _not_after(cert):
        errors.append("certificate has expired")
    if now < _not_before(cert):
        errors.append("certificate is not yet valid")

    names = extract_sans(cert) or _common_names(cert)
    if not hostname_matches(host, names):
        errors.append(f"certificate is not valid for {host}")

    errors.extend(weak_crypto_issues(cert))

    if cert.issuer == cert.subject:
        errors.append("certificate is self-signed")

    return errors


class SSLInspector:
    """Fetch and inspect the certificate presented by a TLS endpoint."""

    def __init__(self, timeout: float = 10.0, logger: Logger | None = None):
        self.timeout = timeout
        self.logger = logger or NullLogger()

    def _handshake(self, host: str, port: int) -> tuple[bytes | None, list[bytes], str | None, str | None]:
        # Verification is off so that broken certificates can still be inspected
        context = ssl.create_default_context()
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE

        with socket.create_connection((host, port), timeout=self.timeout) as sock:
            with context.wrap_socket(sock, server_hostname=host) as ssock:
                leaf = ssock.getpeercert(binary_form=True)
                chain: list[bytes] = []
                get_chain = getattr(ssock, "get_unverified_chain", None)
                if get_chain is not None:
                    chain = [bytes(c) for c in (get_chain() or [])]
                cipher = ssock.cipher()
                return leaf, chain, ssock.version(), cipher[0] if cipher else None

    async def check(self, host: str, port: int = 443, cancel: CancelSignal | None = None) -> SSLResult:
        """Connect, fetch the certificate chain and validate the leaf."""
        self.logger.info("Starting SSL check", host=host, port=port)

        loop = asyncio.get_running_loop()
        try:
            leaf_der, chain_der, version, cipher_name = await guarded(
                loop.run_in_executor(None, self._handshake, host, port),
                cancel,
            )
        except (OSError, ssl.SSLError) as e:
            raise network_error(
                "SSL_CONNECTION_FAILED", "SSL connection failed", cause=e, host=host, port=port,
            ) from e

        if not leaf_der:
            raise network_error("SSL_NO_CERTIFICATES", "no certificates found", host=host, port=port)

        try:
            cert = x509.load_der_x509_certificate(leaf_der)
            chain = [x509.load_der_x509_certificate(der) for der in chain_der] or [cert]
        except ValueError as e:
            raise network_error(
                "SSL_INVALID_CERTIFICATE", "certificate could not be decoded", cause=e, host=host, port=port,
            ) from e

        now = datetime.now(timezone.utc)
        chain_length = len(chain_der) if chain_der else None
        errors = validate_certificate(cert, host, now)
        warnings = certificate_warnings(cert, chain_length, now)
        result = SSLResult(
            host=host,
            port=port,
            certificate=cert,
            chain=chain,
            valid=not errors,
            errors=errors,
            expiry=_not_after(cert),
            issuer=cert.issuer.rfc4514_string(),
            subject=cert.subject.rfc4514_string(),
            sans=extract_sans(cert),
            protocol_version=version,
            cipher_name=cipher_name,
            warnings=warnings,
            security_level=security_level(errors, warnings),
            recommendations=security_recommendations(cert, chain_length, now),
        )

        self.logger.info(
            "SSL check completed", host=host, port=port, valid=result.valid, level=result.security_level.value,
        )
        return result
