from typing import Iterable

from fastapi import Response

from wallmag_auth.settings import get_settings

# The CSRF cookie is read by the client and echoed in the request body.
_CLIENT_READABLE = {"otp_csrf_token"}


def set_cookie(response: Response, name: str, value: str, max_age: int) -> None:
    readable = name in _CLIENT_READABLE
    response.set_cookie(
        name,
        value,
        max_age=max_age,
        path="/",
        httponly=not readable,
        secure=get_settings().cookie_secure,
        samesite="strict" if readable else "lax",
    )


def clear_cookies(response: Response, names: Iterable[str]) -> None:
    secure = get_settings().cookie_secure
    for name in names:
        readable = name in _CLIENT_READABLE
        response.delete_cookie(
            name,
            path="/",
            httponly=not readable,
            secure=secure,
            samesite="strict" if readable else "lax",
        )
