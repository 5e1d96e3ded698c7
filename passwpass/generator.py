import secrets
from dataclasses import dataclass

from . import config
from .errors import InvalidConfigError


@dataclass
class GeneratorConfig:
    """Character classes and length for generate_password()."""
    length: int = config.PASSWORD_GENERATOR_DEFAULT_LENGTH
    numbers: bool = True
    symbols: bool = True
    uppercase: bool = True
    lowercase: bool = True

    def alphabet(self) -> str:
        chars = ""
        if self.numbers:
            chars += config.PASSWORD_GENERATOR_NUMBERS
        if self.symbols:
            chars += config.PASSWORD_GENERATOR_SYMBOLS
        if self.uppercase:
            chars += config.PASSWORD_GENERATOR_UPPERCASE
        if self.lowercase:
            chars += config.PASSWORD_GENERATOR_LOWERCASE
        return chars


def generate_password(options: GeneratorConfig = None) -> str:
    """
    Generate a password drawing each character uniformly from the enabled classes.

    Raises:
        InvalidConfigError: If no character class is enabled or length is negative
    """
    if options is None:
        options = GeneratorConfig()
    chars = options.alphabet()
    if not chars:
        raise InvalidConfigError("Select at least one character type")
    if not isinstance(options.length, int) or isinstance(options.length, bool) or options.length < 0:
        raise InvalidConfigError(f"Password length must be a non-negative integer, got {options.length!r}")
    return ''.join(secrets.choice(chars) for _ in range(options.length))
