import hashlib
import hmac
import secrets
import uuid

from cryptography.fernet import Fernet

from config import settings


_fernet = Fernet(settings.encryption_key)


def encrypt_secret(secret: str) -> str:
    return _fernet.encrypt(secret.encode("utf-8")).decode("utf-8")


def decrypt_secret(encrypted_value: str) -> str:
    return _fernet.decrypt(encrypted_value.encode("utf-8")).decode("utf-8")


def hash_code(code: str) -> str:
    """Salted SHA-256 hex digest used for 2FA/reset codes and reset tokens."""
    salted = f"{code}{settings.supabase_service_role_key}"
    return hashlib.sha256(salted.encode("utf-8")).hexdigest()


def codes_match(code: str, stored_hash: str) -> bool:
    return hmac.compare_digest(hash_code(code), stored_hash or "")


def generate_code() -> str:
    return str(100000 + secrets.randbelow(900000))


def generate_reset_token() -> str:
    return str(uuid.uuid4())
