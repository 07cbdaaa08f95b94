import binascii
import hashlib
import hmac
import logging
from dataclasses import dataclass
from typing import Callable

logger = logging.getLogger(__name__)

SIGNATURE_256_HEADER = "X-Hub-Signature-256"
LEGACY_SIGNATURE_HEADER = "X-Hub-Signature"


@dataclass(frozen=True)
class SignatureScheme:
    header: str
    prefix: str
    digest: Callable

    @property
    def digest_size(self) -> int:
        return self.digest().digest_size


SHA256 = SignatureScheme(SIGNATURE_256_HEADER, "sha256=", hashlib.sha256)
# Deprecated by GitHub, still sent alongside the sha256 header.
SHA1 = SignatureScheme(LEGACY_SIGNATURE_HEADER, "sha1=", hashlib.sha1)

# Strongest first.
SCHEMES: tuple[SignatureScheme, ...] = (SHA256, SHA1)


def compute(secret: str, raw_body: bytes, scheme: SignatureScheme = SHA256) -> str:
    """Return the full header value (prefix included) for ``raw_body``."""
    mac = hmac.new(secret.encode("utf-8"), raw_body, scheme.digest)
    return scheme.prefix + mac.hexdigest()


def verify(
    secret: str,
    signature: str | None,
    raw_body: bytes,
    scheme: SignatureScheme = SHA256,
) -> bool:
    """Check ``signature`` against an HMAC of the exact request bytes.

    A malformed header (wrong prefix, bad hex, wrong length) is reported the
    same way as a mismatch.
    """
    if not secret or not signature:
        return False
    if not signature.startswith(scheme.prefix):
        logger.info(f"Signature does not carry the {scheme.prefix} prefix")
        return False

    try:
        received = binascii.unhexlify(signature[len(scheme.prefix) :])
    except (ValueError, binascii.Error):
        logger.info("Signature is not valid hex")
        return False
    if len(received) != scheme.digest_size:
        logger.info(f"Signature has {len(received)} bytes, expected {scheme.digest_size}")
        return False

    expected = hmac.new(secret.encode("utf-8"), raw_body, scheme.digest).digest()
    return hmac.compare_digest(received, expected)
