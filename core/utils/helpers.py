"""
Helper utility functions.
"""
from pathlib import PurePosixPath
from typing import Optional
from urllib.parse import quote
from uuid import uuid4
import re

PASSWORD_SPECIAL_CHARACTERS = "!@#$%^&*()_+-=[]{};':\"\\|,.<>/?"

_UPPERCASE_PATTERN = re.compile(r'[A-Z]')
_DIGIT_PATTERN = re.compile(r'[0-9]')


def is_strong_password(password: Optional[str]) -> bool:
    """
    Check a password against the asset password policy.

    The policy requires at least one uppercase ASCII letter, one digit
    and one character from PASSWORD_SPECIAL_CHARACTERS. Length is not checked.

    Example:
        >>> is_strong_password("Abcdefg1!")
        True
        >>> is_strong_password("Abcdefg1")
        False
    """
    if not password:
        return False
    has_uppercase = _UPPERCASE_PATTERN.search(password) is not None
    has_digit = _DIGIT_PATTERN.search(password) is not None
    has_special = any(char in PASSWORD_SPECIAL_CHARACTERS for char in password)
    return has_uppercase and has_digit and has_special


def build_object_key(file_name: str, folder_path: Optional[str] = None) -> str:
    """
    Build the object key for an uploaded file.

    Leading and trailing slashes are trimmed from the folder. Keys are
    deterministic: the same name uploaded to the same folder maps to the
    same key and replaces the earlier object.

    Example:
        >>> build_object_key("report.pdf", "/finance/2024/")
        'finance/2024/report.pdf'
    """
    folder = (folder_path or "").strip("/")
    if not folder:
        return file_name
    return f"{folder}/{file_name}"


def generate_asset_id(file_name: str) -> str:
    """
    Generate an asset id of the form <name-without-extension>-<uuid4>.

    Example:
        >>> generate_asset_id("report.pdf")  # doctest: +SKIP
        'report-cacc19ff-21f8-4894-bd24-ca93d8c4de4a'
    """
    base_name = PurePosixPath(file_name).stem or file_name
    return f"{base_name}-{uuid4()}"


def build_download_url(base_url: str, asset_id: str, token: str) -> str:
    """
    Build the shareable download locator handed out to end users.

    Both the asset id and the token are percent-encoded.
    """
    return (
        f"{base_url.rstrip('/')}/download/{quote(asset_id, safe='')}"
        f"?token={quote(token, safe='')}"
    )


def build_content_disposition(file_name: str) -> str:
    """
    Build an attachment Content-Disposition header for a file name.

    Non-ASCII names get an RFC 5987 filename* parameter.
    """
    quoted = quote(file_name)
    if quoted != file_name:
        return f"attachment; filename*=utf-8''{quoted}"
    escaped = file_name.replace('\\', '\\\\').replace('"', '\\"')
    return f'attachment; filename="{escaped}"'
