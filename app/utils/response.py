"""
Response envelope shared by every endpoint: {success, data, message}.
Errors raised as ODZenError are rendered with error_response in app.main.
"""

from typing import Any


def success_response(data: Any = None, message: str = "Success") -> dict:
    return {"success": True, "data": data, "message": message}


def error_response(message: str = "An unexpected error occurred", data: Any = None) -> dict:
    return {"success": False, "data": data, "message": message}
