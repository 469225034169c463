"""
TLS Module

Provides certificate retrieval and validation for TLS endpoints.
"""

from nettracex.tls.core import (
    SSLInspector,
    certificate_warnings,
    extract_sans,
    hostname_matches,
    security_level,
    security_recommendations,
    validate_certificate,
    weak_crypto_issues,
)

__all__ = [
    "SSLInspector",
    "certificate_warnings",
    "extract_sans",
    "hostname_matches",
    "security_level",
    "security_recommendations",
    "validate_certificate",
    "weak_crypto_issues",
]
