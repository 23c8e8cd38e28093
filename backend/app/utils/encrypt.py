import logging

from cryptography.fernet import Fernet, InvalidToken
from app.config import settings

log = logging.getLogger(__name__)


def get_fernet_key():
    """Returns the Fernet key from settings."""
    return Fernet(settings.encryption_key.encode('utf-8'))


def encrypt_data(data: str) -> str:
    """Encrypts a string using Fernet."""
    if not data:
        return ''
    f = get_fernet_key()
    return f.encrypt(data.encode('utf-8')).decode('utf-8')


def decrypt_data(encrypted_data: str) -> str:
    """
    Decrypts a string using Fernet.

    Returns an empty string for empty, malformed or tampered input; callers
    treat an empty credential as an authentication failure.
    """
    if not encrypted_data:
        return ''
    f = get_fernet_key()
    try:
        return f.decrypt(encrypted_data.encode('utf-8')).decode('utf-8')
    except (InvalidToken, UnicodeError) as e:
        log.error(f"Decryption failed: {type(e).__name__}")
        return ''
