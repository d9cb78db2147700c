"""Service for encrypting and decrypting stored OAuth tokens."""

import base64
import hashlib
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken

from clipdex.config import settings


class CredentialService:
    """Service for secure credential management."""

    def __init__(self, secret_key: Optional[str] = None):
        """Initialize credential service with encryption key."""
        self.cipher = self._get_cipher(secret_key or settings.SECRET_KEY)

    def _get_cipher(self, secret_key: str) -> Fernet:
        """
        Get Fernet cipher for encryption/decryption.

        Returns:
            Fernet cipher instance
        """
        # Create a 32-byte key from SECRET_KEY
        key = hashlib.sha256(secret_key.encode()).digest()
        key_b64 = base64.urlsafe_b64encode(key)

        return Fernet(key_b64)

    def encrypt_token(self, token: Optional[str]) -> Optional[str]:
        """
        Encrypt a token for storage.

        Empty tokens are stored as None.
        """
        if not token:
            return None
        return self.cipher.encrypt(token.encode()).decode()

    def decrypt_token(self, encrypted_token: Optional[str]) -> Optional[str]:
        """
        Decrypt a stored token.

        Raises:
            ValueError: If decryption fails
        """
        if not encrypted_token:
            return None
        try:
            return self.cipher.decrypt(encrypted_token.encode()).decode()
        except InvalidToken as e:
            raise ValueError("Failed to decrypt stored token") from e


credential_service = CredentialService()
