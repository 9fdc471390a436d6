from cryptography.fernet import Fernet
import base64


def get_encryption_key(secret: str) -> bytes:
    """Derive a Fernet key from the configured secret"""
    key = secret.encode()
    # Ensure key is 32 bytes for Fernet
    if len(key) != 32:
        key = key[:32].ljust(32, b'0')
    return base64.urlsafe_b64encode(key)


def encrypt_password(password: str, secret: str) -> str:
    """Encrypt a server login password for storage"""
    f = Fernet(get_encryption_key(secret))
    encrypted = f.encrypt(password.encode())
    return encrypted.decode()


def decrypt_password(encrypted_password: str, secret: str) -> str:
    """Decrypt a stored server login password.

    No route returns the plaintext; this is for operators reading the store
    directly and for checks that the stored value round-trips.

    Raises cryptography.fernet.InvalidToken when the secret does not match.
    """
    f = Fernet(get_encryption_key(secret))
    return f.decrypt(encrypted_password.encode()).decode()
