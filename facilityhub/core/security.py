import base64
import hashlib
import hmac
import logging
from cryptography.fernet import Fernet, InvalidToken
from facilityhub.core.config import settings

logger = logging.getLogger(__name__)


def _cipher_key() -> bytes:
    if settings.encryption_key:
        return settings.encryption_key.encode()
    # Development/testing only; config refuses to start elsewhere without ENCRYPTION_KEY
    digest = hashlib.sha256(settings.secret_key.encode()).digest()
    return base64.urlsafe_b64encode(digest)


_cipher = Fernet(_cipher_key())

def encrypt_data(data: str) -> str:
    """Encrypt sensitive string data (bank account numbers)."""
    if not data:
        return data
    try:
        return _cipher.encrypt(data.encode()).decode()
    except Exception as e:
        logger.error(f"Encryption failed: {e}")
        raise ValueError(f"Encryption failed, refusing to store plaintext: {e}") from e

def decrypt_data(encrypted_data: str) -> str:
    """Decrypt sensitive string data."""
    if not encrypted_data:
        return encrypted_data
    try:
        return _cipher.decrypt(encrypted_data.encode()).decode()
    except InvalidToken:
        logger.warning("Decryption failed (possibly not encrypted)")
        return encrypted_data

def mask_account_number(account_number: str) -> str:
    if not account_number:
        return account_number
    return "*" * max(0, len(account_number) - 4) + account_number[-4:]

def constant_time_compare(a: str, b: str) -> bool:
    """Compare two strings in constant time to prevent timing attacks."""
    if not a or not b:
        return False
    return hmac.compare_digest(a, b)

def compute_hmac_sha512(secret: str, payload: bytes) -> str:
    return hmac.new(secret.encode("utf-8"), payload, hashlib.sha512).hexdigest()
