"""
User management (admin screen)

Plain CRUD over /users. An empty password on update is left out of the
request so the stored password is kept.
"""

import logging
from typing import List, Optional

from pydantic import BaseModel, Field

from ..api_client import ApiClient

logger = logging.getLogger(__name__)

ROLES = ("patient", "doctor", "admin")


class UserForm(BaseModel):
    name: str
    username: str
    email: str
    password: str = ""
    role: str = Field("patient", pattern="^(patient|doctor|admin)$")
    specialization: Optional[str] = None
    phone: Optional[str] = None

    def to_body(self, include_empty_password: bool = True) -> dict:
        body = self.model_dump(exclude_none=True)
        if not include_empty_password and not body.get("password"):
            body.pop("password", None)
        return body


def list_users(client: ApiClient) -> List[dict]:
    return client.get("/users") or []


def create_user(client: ApiClient, form: UserForm) -> dict:
    logger.info(f"Creating {form.role} account {form.username}")
    return client.post("/users/register", json=form.to_body()) or {}


def update_user(client: ApiClient, user_id: int, form: UserForm) -> dict:
    return client.put(f"/users/{user_id}", json=form.to_body(include_empty_password=False)) or {}


def delete_user(client: ApiClient, user_id: int) -> None:
    logger.info(f"Deleting user {user_id}")
    client.delete(f"/users/{user_id}")
