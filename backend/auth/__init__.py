from .jwt_handler import create_access_token, decode_token
from .dependencies import (
    CurrentUser,
    get_current_user,
    require_admin,
    require_manager_or_admin,
)

__all__ = [
    "create_access_token",
    "decode_token",
    "CurrentUser",
    "get_current_user",
    "require_admin",
    "require_manager_or_admin",
]
