"""
PasswPass credential vault

A single-user, local-only store of site/username/password records sealed
under a passphrase, with heuristics that flag reused, weak and incomplete
entries. Front ends call the functions re-exported here.
"""

from .vault_manager import (  # noqa: F401
    load_vault,
    save_vault,
    load_categories,
    save_categories,
    analyze,
    classify_strength,
    generate_password,
    open_session,
)
from .storage import CredentialRecord  # noqa: F401
from .generator import GeneratorConfig  # noqa: F401
