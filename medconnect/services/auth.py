"""
Authentication flows

Login stores the session returned by the backend. Password reset is
validated on the client before any request goes out.
"""

import logging

from pydantic import BaseModel

from ..api_client import ApiClient
from ..errors import ApplicationError, ValidationFailed
from ..session import SessionContext

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6

WELCOME_MESSAGES = {
    "admin": "Welcome back, Admin! Ready to manage the system.",
    "doctor": "Welcome back, Doctor! Your patients are waiting.",
    "patient": "Welcome back! Your health journey continues.",
}
DEFAULT_WELCOME = "Login successful. Welcome to MedConnect Rwanda!"

# Roles that land on the dashboard after login; everyone else goes home
DASHBOARD_ROLES = ("admin", "doctor")


class LoginResult(BaseModel):
    role: str
    message: str
    landing_page: str


def welcome_message(role: str) -> str:
    return WELCOME_MESSAGES.get(role, DEFAULT_WELCOME)


def login(client: ApiClient, identifier: str, password: str) -> LoginResult:
    """
    POST /users/login and establish the session.

    Args:
        identifier: Username or email
    """
    data = client.post("/users/login", json={"usernameOrEmail": identifier, "password": password}) or {}
    token = data.get("token")
    if not token:
        raise ApplicationError(200, "Login response did not include a token", data)

    context: SessionContext = client.session.establish(token, data.get("role") or "", data.get("user"))
    logger.info(f"Signed in as {context.display_name or identifier} ({context.role})")

    return LoginResult(
        role=context.role,
        message=welcome_message(context.role),
        landing_page="/dashboard" if context.role in DASHBOARD_ROLES else "/",
    )


def logout(client: ApiClient) -> None:
    client.session.invalidate()
    logger.info("Signed out")


def forgot_password(client: ApiClient, email: str) -> str:
    """Request a reset link; returns the backend's message."""
    data = client.post("/users/forgot-password", json={"email": email}) or {}
    return data.get("message") or "Password reset link sent to your email."


def validate_new_password(new_password: str, confirm_password: str) -> None:
    if new_password != confirm_password:
        raise ValidationFailed("Passwords do not match!")
    if len(new_password) < MIN_PASSWORD_LENGTH:
        raise ValidationFailed(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long!")


def reset_password(client: ApiClient, token: str, new_password: str, confirm_password: str) -> str:
    """
    Set a new password with a reset token.

    Raises:
        ValidationFailed: passwords differ or are too short (no request is sent)
    """
    validate_new_password(new_password, confirm_password)
    data = client.post("/users/reset-password", json={"token": token, "newPassword": new_password}) or {}
    return data.get("message") or "Password reset successfully!"
