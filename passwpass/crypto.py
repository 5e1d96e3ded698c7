"""
Cryptographic operations for the credential vault.

Vault tokens are AES-256-CBC ciphertexts keyed from a passphrase. CBC with
PKCS7 padding provides confidentiality only: no authentication tag is
verified, so a tampered token may decrypt to garbage instead of failing.
A wrong passphrase is detected by bad padding or non-UTF-8 plaintext.

Token layout (URL-safe base64 text):

    MAGIC(4) | VERSION(1) | KDF_ID(1) | COSTS(3 x uint32 LE) | SALT(16) | IV(16) | CIPHERTEXT

COSTS are (time_cost, memory_cost, parallelism) for Argon2id and
(iterations, 0, 0) for PBKDF2, so a token decrypts regardless of the
reading manager's own settings.
"""

import os
import json
import base64
import binascii
import struct
from typing import Any, Optional, Tuple

from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.primitives import hashes, padding
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
from cryptography.hazmat.backends import default_backend

from . import config
from .errors import DecryptionError, SerializationError

try:
    from argon2.low_level import hash_secret_raw, Type
    ARGON2_AVAILABLE = True
except ImportError:
    ARGON2_AVAILABLE = False

KDF_ARGON2ID = 1
KDF_PBKDF2 = 2

HEADER_FORMAT = '<BBIII'


class CryptoManager:
    """Handles all cryptographic operations for the vault."""

    BLOCK_SIZE = 128  # AES block size in bits, for PKCS7

    def __init__(self,
                 time_cost: int = config.ARGON2_TIME_COST,
                 memory_cost: int = config.ARGON2_MEMORY_COST,
                 parallelism: int = config.ARGON2_PARALLELISM,
                 pbkdf2_iterations: int = config.PBKDF2_ITERATIONS,
                 use_argon2: bool = ARGON2_AVAILABLE):
        """Initialize the crypto manager with its key derivation parameters."""
        self.backend = default_backend()
        self.time_cost = time_cost
        self.memory_cost = memory_cost
        self.parallelism = parallelism
        self.pbkdf2_iterations = pbkdf2_iterations
        self.kdf_id = KDF_ARGON2ID if use_argon2 and ARGON2_AVAILABLE else KDF_PBKDF2

    @property
    def header_size(self) -> int:
        return len(config.CIPHER_MAGIC) + struct.calcsize(HEADER_FORMAT) + config.SALT_SIZE + config.IV_SIZE

    @property
    def costs(self) -> Tuple[int, int, int]:
        """Cost parameters written into tokens sealed by this manager."""
        if self.kdf_id == KDF_ARGON2ID:
            return self.time_cost, self.memory_cost, self.parallelism
        return self.pbkdf2_iterations, 0, 0

    def generate_salt(self) -> bytes:
        """Generate a cryptographically secure random salt."""
        return os.urandom(config.SALT_SIZE)

    def derive_key(self, passphrase: str, salt: bytes, kdf_id: Optional[int] = None,
                   costs: Optional[Tuple[int, int, int]] = None) -> bytes:
        """
        Derive an AES key from a passphrase using Argon2id or PBKDF2.

        Args:
            passphrase: The vault passphrase
            salt: Random salt for key derivation
            kdf_id: KDF_ARGON2ID or KDF_PBKDF2; defaults to this manager's KDF
            costs: Cost parameters as laid out in the token header; defaults to this manager's

        Returns:
            KEY_SIZE-byte encryption key

        Raises:
            DecryptionError: Unknown KDF, out-of-range costs, or a passphrase that is not valid Unicode
        """
        if kdf_id is None:
            kdf_id = self.kdf_id
            costs = self.costs
        elif costs is None:
            raise DecryptionError("Cost parameters are required with an explicit KDF id")
        try:
            secret = passphrase.encode('utf-8')
        except UnicodeEncodeError as e:
            raise DecryptionError("Passphrase is not valid Unicode text") from e

        if kdf_id == KDF_ARGON2ID:
            if not ARGON2_AVAILABLE:
                raise DecryptionError("Token was sealed with Argon2id but argon2-cffi is not installed")
            time_cost, memory_cost, parallelism = costs
            if not (1 <= time_cost <= config.KDF_MAX_TIME_COST
                    and 1 <= parallelism <= config.KDF_MAX_PARALLELISM
                    and 8 * parallelism <= memory_cost <= config.KDF_MAX_MEMORY_COST):
                raise DecryptionError(f"Argon2id costs out of range: {costs}")
            return hash_secret_raw(
                secret=secret,
                salt=salt,
                time_cost=time_cost,
                memory_cost=memory_cost,
                parallelism=parallelism,
                hash_len=config.KEY_SIZE,
                type=Type.ID
            )
        if kdf_id == KDF_PBKDF2:
            iterations = costs[0]
            if not 1 <= iterations <= config.KDF_MAX_PBKDF2_ITERATIONS:
                raise DecryptionError(f"PBKDF2 iteration count out of range: {iterations}")
            kdf = PBKDF2HMAC(
                algorithm=hashes.SHA256(),
                length=config.KEY_SIZE,
                salt=salt,
                iterations=iterations,
                backend=self.backend
            )
            return kdf.derive(secret)
        raise DecryptionError(f"Unknown key derivation function id {kdf_id}")

    def encrypt(self, plaintext: bytes, passphrase: str) -> str:
        """
        Encrypt data with AES-256-CBC under a passphrase-derived key.

        Args:
            plaintext: Data to encrypt
            passphrase: The vault passphrase

        Returns:
            Self-contained URL-safe base64 token

        Raises:
            ValueError: If the passphrase is empty or not valid Unicode text
        """
        if not passphrase:
            raise ValueError("Passphrase must not be empty")
        try:
            passphrase.encode('utf-8')
        except UnicodeEncodeError as e:
            raise ValueError("Passphrase is not valid Unicode text") from e
        salt = self.generate_salt()
        iv = os.urandom(config.IV_SIZE)
        key = self.derive_key(passphrase, salt)

        padder = padding.PKCS7(self.BLOCK_SIZE).padder()
        padded = padder.update(plaintext) + padder.finalize()
        encryptor = Cipher(algorithms.AES(key), modes.CBC(iv), backend=self.backend).encryptor()
        ciphertext = encryptor.update(padded) + encryptor.finalize()

        header = config.CIPHER_MAGIC + struct.pack(HEADER_FORMAT, config.CIPHER_VERSION, self.kdf_id, *self.costs)
        return base64.urlsafe_b64encode(header + salt + iv + ciphertext).decode('ascii')

    def decrypt(self, token: str, passphrase: str) -> bytes:
        """
        Decrypt a token produced by encrypt().

        Args:
            token: URL-safe base64 token
            passphrase: The vault passphrase

        Returns:
            Decrypted plaintext, guaranteed to be valid UTF-8

        Raises:
            DecryptionError: If the token is malformed or the passphrase is wrong
        """
        if not passphrase:
            raise DecryptionError("Passphrase must not be empty")
        try:
            raw = base64.urlsafe_b64decode(token.strip().encode('ascii'))
        except (binascii.Error, ValueError, UnicodeEncodeError) as e:
            raise DecryptionError("Token is not valid base64") from e

        magic_len = len(config.CIPHER_MAGIC)
        if len(raw) < magic_len + 1 or raw[:magic_len] != config.CIPHER_MAGIC:
            raise DecryptionError("Token is not a PasswPass vault")
        if raw[magic_len] != config.CIPHER_VERSION:
            raise DecryptionError(f"Unsupported token version {raw[magic_len]}")
        if len(raw) < self.header_size:
            raise DecryptionError("Token is truncated")

        offset = magic_len + struct.calcsize(HEADER_FORMAT)
        _, kdf_id, *costs = struct.unpack(HEADER_FORMAT, raw[magic_len:offset])
        salt = raw[offset:offset + config.SALT_SIZE]
        offset += config.SALT_SIZE
        iv = raw[offset:offset + config.IV_SIZE]
        ciphertext = raw[offset + config.IV_SIZE:]
        if not ciphertext or len(ciphertext) % (self.BLOCK_SIZE // 8):
            raise DecryptionError("Ciphertext length is not a whole number of blocks")

        key = self.derive_key(passphrase, salt, kdf_id, tuple(costs))
        decryptor = Cipher(algorithms.AES(key), modes.CBC(iv), backend=self.backend).decryptor()
        padded = decryptor.update(ciphertext) + decryptor.finalize()
        try:
            unpadder = padding.PKCS7(self.BLOCK_SIZE).unpadder()
            plaintext = unpadder.update(padded) + unpadder.finalize()
            plaintext.decode('utf-8')
        except (ValueError, UnicodeDecodeError) as e:
            raise DecryptionError("Incorrect passphrase or corrupt vault") from e
        return plaintext

    def encrypt_json(self, obj: Any, passphrase: str) -> str:
        """Serialize obj as JSON and encrypt it."""
        return self.encrypt(json.dumps(obj).encode('utf-8'), passphrase)

    def decrypt_json(self, token: str, passphrase: str) -> Any:
        """
        Decrypt a token and parse its JSON payload.

        Raises:
            DecryptionError: If decryption fails
            SerializationError: If the plaintext is not valid JSON
        """
        plaintext = self.decrypt(token, passphrase)
        try:
            return json.loads(plaintext.decode('utf-8'))
        except json.JSONDecodeError as e:
            raise SerializationError("Decrypted vault is not valid JSON") from e
