"""
Webhook signature service for HMAC-based payload authentication.

Cassa in Cloud signs the raw request body with HMAC-SHA1 using a secret
shared out-of-band and sends the hex digest in the X-CN-Signature header,
optionally prefixed with "sha1=".
"""
import hashlib
import hmac

from integrations.exceptions import SignatureInvalidError


class SignatureService:
    """
    Service for validating webhook signatures.

    Security Model:
    - One shared secret per deployment (CASSA_IN_CLOUD_WEBHOOK_SECRET)
    - The digest covers the raw bytes, before any parsing
    - Hex digests compare case-insensitively in constant time
    """

    ALGORITHM = 'sha1'
    PREFIX = 'sha1='

    @staticmethod
    def compute_signature(payload: bytes, secret: str) -> str:
        """
        Compute the HMAC-SHA1 hex digest of a raw payload.

        Example:
            >>> SignatureService.compute_signature(b'{"bill": {}}', "s3cret")
            '...'
        """
        return hmac.new(
            key=secret.encode('utf-8'),
            msg=payload,
            digestmod=hashlib.sha1,
        ).hexdigest()

    @staticmethod
    def normalize_signature(signature: str) -> str:
        signature = signature.strip()
        if signature.lower().startswith(SignatureService.PREFIX):
            signature = signature[len(SignatureService.PREFIX):]
        return signature.lower()

    @staticmethod
    def validate_signature(payload: bytes, signature: str, secret: str) -> bool:
        """
        Validate an HMAC signature for a raw payload.

        Returns:
            bool: True if the signature matches
        """
        try:
            expected = SignatureService.compute_signature(payload, secret)
            return hmac.compare_digest(
                SignatureService.normalize_signature(signature).encode('ascii'),
                expected.encode('ascii'),
            )
        except (ValueError, TypeError, AttributeError, UnicodeEncodeError):
            # Malformed signatures never validate
            return False

    @staticmethod
    def verify(payload: bytes, signature: str, secret: str) -> None:
        """
        Raise SignatureInvalidError unless `signature` authenticates `payload`.
        """
        if not secret or not signature:
            raise SignatureInvalidError(status_code=401)
        if not SignatureService.validate_signature(payload, signature, secret):
            raise SignatureInvalidError(status_code=403)
