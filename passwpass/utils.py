import platform
import os
import stat
import logging
import tempfile

logger = logging.getLogger(__name__)

if platform.system() == "Windows":
    try:
        import win32security
        import win32api
        import win32con
        WINDOWS_SECURITY_AVAILABLE = True
    except ImportError:
        logger.warning("pywin32 not fully installed, cannot set Windows file permissions securely.")
        WINDOWS_SECURITY_AVAILABLE = False
else:
    WINDOWS_SECURITY_AVAILABLE = False


ERROR_ACCESS_DENIED = 5


def _owner_only_dacl():
    """A protected DACL with a single read/write entry for the current user."""
    owner_sid, _, _ = win32security.LookupAccountName(None, win32api.GetUserName())
    dacl = win32security.ACL()
    dacl.AddAccessAllowedAce(win32security.ACL_REVISION, win32con.GENERIC_READ | win32con.GENERIC_WRITE, owner_sid)
    return dacl


def _restrict_windows_acl(filepath: str) -> bool:
    """Replace the vault file's DACL so inherited entries no longer apply."""
    if not WINDOWS_SECURITY_AVAILABLE:
        logger.warning(f"Vault file {filepath} keeps its inherited ACL: pywin32 not available.")
        return False

    flags = win32security.DACL_SECURITY_INFORMATION | win32security.PROTECTED_DACL_SECURITY_INFORMATION
    try:
        win32security.SetNamedSecurityInfo(filepath, win32security.SE_FILE_OBJECT, flags,
                                           None, None, _owner_only_dacl(), None)
    except win32api.error as e:
        if e.winerror != ERROR_ACCESS_DENIED:
            logger.error(f"Could not restrict the ACL of {filepath}: {e}")
            return False
        # The write itself succeeded; only the hardening was refused.
        logger.warning(f"Access denied while restricting the ACL of {filepath}; it may be readable by other users.")
    return True


def set_owner_only_permissions(filepath: str) -> bool:
    """Make a file readable/writable by its owner only."""
    if platform.system() == 'Windows':
        return _restrict_windows_acl(filepath)
    try:
        os.chmod(filepath, stat.S_IRUSR | stat.S_IWUSR)  # 600
    except OSError as e:
        logger.warning(f"Failed to chmod {filepath}: {e}")
        return False
    return True


def atomic_write_text(filepath: str, text: str, private: bool = False) -> None:
    """
    Replace filepath with text so that a crash mid-write leaves the previous
    file intact.

    The data goes to a temporary file in the same directory, which is then
    renamed over the target. Errors propagate after the temporary file is
    removed.
    """
    directory = os.path.dirname(os.path.abspath(filepath))
    os.makedirs(directory, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=os.path.basename(filepath) + '.', suffix='.tmp')
    try:
        with os.fdopen(fd, 'w', encoding='utf-8') as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, filepath)
    except BaseException:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)
        raise

    if private and not set_owner_only_permissions(filepath):
        logger.warning(f"Failed to set secure file permissions for {filepath}. This might indicate a permission issue.")
