"""
Exception types shared by the codec, the stores and the generator.
"""


class StorageError(Exception):
    """Base class for faults in persisted vault or category state."""


class StorageNotFound(StorageError):
    """Raised when a storage file does not exist yet (first run)."""


class DecryptionError(StorageError):
    """Raised when decryption fails (wrong passphrase or corrupt token)."""


class SerializationError(StorageError):
    """Raised when decrypted or plaintext content is not the expected JSON shape."""


class InvalidConfigError(ValueError):
    """Raised when the password generator cannot honour its configuration."""


class ConfigurationError(RuntimeError):
    """Raised when required configuration is missing."""
