"""
Configuration constants for the PasswPass credential vault.
"""

import os
import logging

from .errors import ConfigurationError  # noqa: F401

logger = logging.getLogger(__name__)

# Application Metadata
APP_VERSION = "1.0.0"  # Use: Current version of the application. Type: str. Range: Semantic versioning string (e.g., "1.0.0")
APP_NAME = "PasswPass"  # Use: Name of the application, used by the command line entry point. Type: str. Range: Any valid string.

# Environment Variables
ENV_SECRET_KEY = "PASSWPASS_SECRET_KEY"  # Use: Environment variable holding the vault passphrase. Type: str. Range: Any valid environment variable name.
ENV_REQUIRE_SECRET_KEY = "PASSWPASS_REQUIRE_SECRET_KEY"  # Use: Environment variable that, when truthy, forbids falling back to DEFAULT_SECRET_KEY. Type: str. Range: Any valid environment variable name.
ENV_DATA_DIR = "PASSWPASS_DATA_DIR"  # Use: Environment variable overriding the data directory. Type: str. Range: Any valid environment variable name.
TRUTHY_VALUES = ("1", "true", "yes", "on")  # Use: Values accepted as "enabled" for boolean environment variables (compared lowercase). Type: tuple[str]. Range: Any strings.

# Security Settings
DEFAULT_SECRET_KEY = "your-secret-key"  # Use: Fallback vault passphrase when ENV_SECRET_KEY is unset. Publicly known, so it offers no confidentiality. Type: str. Range: Any non-empty string.
CIPHER_MAGIC = b"PWP1"  # Use: Magic bytes opening every encrypted vault token. Type: bytes. Range: Exactly 4 bytes.
CIPHER_VERSION = 2  # Use: Token format version written after the magic bytes. Version 2 carries the KDF cost parameters. Type: int. Range: 0 to 255.
SALT_SIZE = 16  # Use: Size of the key derivation salt in bytes. Type: int. Range: At least 16 bytes (128 bits).
KEY_SIZE = 32  # Use: Size of the AES key in bytes. Type: int. Range: 16 (AES-128), 24 (AES-192), or 32 (AES-256) bytes.
IV_SIZE = 16  # Use: Size of the AES-CBC initialization vector in bytes. Type: int. Range: Always 16 (the AES block size).
ARGON2_TIME_COST = 2  # Use: Argon2id time cost parameter. Type: int. Range: Typically 1 to 10.
ARGON2_MEMORY_COST = 65536  # Use: Argon2id memory cost parameter in KiB. Type: int. Range: At least 8 * ARGON2_PARALLELISM; 65536 (64 MB) recommended.
ARGON2_PARALLELISM = 4  # Use: Argon2id parallelism parameter. Type: int. Range: Typically 1 to 8.
PBKDF2_ITERATIONS = 310000  # Use: Iterations for PBKDF2-HMAC-SHA256 (fallback if Argon2 is unavailable). Type: int. Range: At least 100,000.
KDF_MAX_TIME_COST = 64  # Use: Largest Argon2id time cost accepted from a token header. Type: int. Range: Positive integer.
KDF_MAX_MEMORY_COST = 4194304  # Use: Largest Argon2id memory cost (KiB) accepted from a token header, 4 GiB. Type: int. Range: Positive integer.
KDF_MAX_PARALLELISM = 64  # Use: Largest Argon2id parallelism accepted from a token header. Type: int. Range: Positive integer.
KDF_MAX_PBKDF2_ITERATIONS = 10000000  # Use: Largest PBKDF2 iteration count accepted from a token header. Type: int. Range: Positive integer.

# Password Generator Settings
PASSWORD_GENERATOR_DEFAULT_LENGTH = 16  # Use: Default length for generated passwords. Type: int. Range: Non-negative integer.
PASSWORD_GENERATOR_NUMBERS = "0123456789"  # Use: Digit alphabet for generated passwords. Type: str. Range: Any string of characters.
PASSWORD_GENERATOR_SYMBOLS = "!@#$%^&*_-+="  # Use: Symbol alphabet for generated passwords. Type: str. Range: Any string of punctuation characters.
PASSWORD_GENERATOR_UPPERCASE = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"  # Use: Uppercase alphabet for generated passwords. Type: str. Range: Any string of characters.
PASSWORD_GENERATOR_LOWERCASE = "abcdefghijklmnopqrstuvwxyz"  # Use: Lowercase alphabet for generated passwords. Type: str. Range: Any string of characters.

# Password Analysis Settings
WEAK_PASSWORD_MIN_LENGTH = 8  # Use: Minimum length a password needs to avoid the analyzer's weak flag. Type: int. Range: Positive integer.
STRENGTH_LONG_LENGTH = 12  # Use: Length at which the strength rule awards its full length bonus (+2). Type: int. Range: Greater than STRENGTH_MEDIUM_LENGTH.
STRENGTH_MEDIUM_LENGTH = 8  # Use: Length at which the strength rule awards its partial length bonus (+1). Type: int. Range: Positive integer.

# File and Directory Names
CONFIG_DIR_NAME = ".passwpass"  # Use: Name of the hidden directory within the user's home directory holding PasswPass data. Type: str. Range: Any valid directory name.
DATA_DIR_NAME = "data"  # Use: Subdirectory of CONFIG_DIR_NAME holding the vault and category files. Type: str. Range: Any valid directory name.
DEFAULT_VAULT_FILE = "passwords.json"  # Use: Filename of the encrypted vault. Type: str. Range: Any valid filename.
DEFAULT_CATEGORIES_FILE = "categories.json"  # Use: Filename of the plaintext category list. Type: str. Range: Any valid filename.
BACKUP_FILE_TEMPLATE = "backup-{date}.json"  # Use: Default filename for plaintext backups; {date} is an ISO date. Type: str. Range: Any filename containing "{date}".


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").strip().lower() in TRUTHY_VALUES


def get_secret_key() -> str:
    """
    Resolve the vault passphrase from the environment.

    Falls back to DEFAULT_SECRET_KEY with a warning, unless
    ENV_REQUIRE_SECRET_KEY is set, in which case a missing key is fatal.

    Raises:
        ConfigurationError: If no passphrase is configured and one is required
    """
    secret = os.environ.get(ENV_SECRET_KEY)
    if secret:
        return secret
    if _env_flag(ENV_REQUIRE_SECRET_KEY):
        raise ConfigurationError(f"{ENV_SECRET_KEY} is not set and {ENV_REQUIRE_SECRET_KEY} forbids the default key")
    logger.warning(f"{ENV_SECRET_KEY} is not set; using the built-in default key. The vault is NOT confidential.")
    return DEFAULT_SECRET_KEY


def get_data_dir() -> str:
    """Directory holding the vault and category files."""
    override = os.environ.get(ENV_DATA_DIR)
    if override:
        return os.path.expanduser(override)
    return os.path.join(os.path.expanduser("~"), CONFIG_DIR_NAME, DATA_DIR_NAME)
