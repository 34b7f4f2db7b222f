import platform
import os
import stat
import logging

logger = logging.getLogger(__name__)

if platform.system() == "Windows":
    try:
        import win32security
        import win32api
        import win32con
        import winerror
        WINDOWS_SECURITY_AVAILABLE = True
    except ImportError:
        logger.warning("pywin32 is not installed; files will keep their inherited Windows permissions")
        WINDOWS_SECURITY_AVAILABLE = False
else:
    WINDOWS_SECURITY_AVAILABLE = False


def ensure_dir(path: str) -> str:
    """Create a directory (and parents) if missing and return it."""
    os.makedirs(path, exist_ok=True)
    return path


def set_owner_only_permissions(filepath: str) -> bool:
    """
    Restrict a file so only the current user can read or write it.
    Returns False when the permissions could not be applied.
    """
    if platform.system() == 'Windows':
        return _set_windows_file_permissions(filepath)
    try:
        os.chmod(filepath, stat.S_IRUSR | stat.S_IWUSR)  # 600
    except OSError as e:
        logger.warning(f"Failed to chmod {filepath}: {e}")
        return False
    return True


def _current_user_sid():
    sid, _domain, _kind = win32security.LookupAccountName(None, win32api.GetUserName())
    return sid


def _owner_only_dacl(sid):
    dacl = win32security.ACL()
    dacl.AddAccessAllowedAce(win32security.ACL_REVISION, win32con.GENERIC_READ | win32con.GENERIC_WRITE, sid)
    return dacl


def _set_windows_file_permissions(filepath: str) -> bool:
    """
    Give the file a protected DACL whose only entry lets the current user
    read and write it. Inherited entries are dropped.
    """
    if not WINDOWS_SECURITY_AVAILABLE:
        logger.warning(f"pywin32 missing, {filepath} keeps its inherited permissions")
        return False

    try:
        win32security.SetNamedSecurityInfo(
            filepath,
            win32security.SE_FILE_OBJECT,
            win32security.DACL_SECURITY_INFORMATION | win32security.PROTECTED_DACL_SECURITY_INFORMATION,
            None,
            None,
            _owner_only_dacl(_current_user_sid()),
            None
        )
    except win32api.error as e:
        if e.winerror == winerror.ERROR_ACCESS_DENIED:
            # The data was written; only the ACL change was refused
            logger.warning(f"Access denied while restricting {filepath}")
            return True
        logger.error(f"Could not restrict {filepath}: {e}")
        return False
    logger.debug(f"{filepath} restricted to the current user")
    return True
