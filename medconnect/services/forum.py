"""
Community forum and success stories

Required fields are checked before the request; the backend decides the rest.
A user rates a post once: a second rating of the same post is rejected
locally using the user's known likes.

Admins moderate through the /admin endpoints: approving pending stories,
pinning or deleting topics, editing posts.
"""

import logging
from typing import Dict, List, Optional

from ..api_client import ApiClient
from ..errors import ValidationFailed

logger = logging.getLogger(__name__)

LIKE_TYPES = ("like", "dislike")


def _current_user_id(client: ApiClient) -> Optional[int]:
    session = client.session.current
    return session.user_id if session else None


def list_topics(client: ApiClient) -> List[dict]:
    return client.get("/forum/topics") or []


def get_topic(client: ApiClient, topic_id: int) -> dict:
    """Topic with its posts."""
    return client.get(f"/forum/topics/{topic_id}") or {}


def create_topic(client: ApiClient, title: str, description: str = "") -> dict:
    if not title.strip():
        raise ValidationFailed("Topic title is required")
    return client.post("/forum/topics", json={
        "title": title,
        "description": description,
        "created_by": _current_user_id(client),
    }) or {}


def create_post(client: ApiClient, topic_id: int, content: str) -> dict:
    if not content.strip():
        raise ValidationFailed("Post content is required")
    return client.post("/forum/posts", json={
        "topic_id": topic_id,
        "user_id": _current_user_id(client),
        "content": content,
    }) or {}


def user_likes(client: ApiClient, user_id: Optional[int] = None) -> Dict[int, str]:
    """Map of post id -> like type for the user (default: signed-in user)."""
    user_id = user_id if user_id is not None else _current_user_id(client)
    if user_id is None:
        return {}
    likes = client.get(f"/post-likes/user/{user_id}") or []
    return {like["post_id"]: like.get("like_type", "like") for like in likes if isinstance(like, dict) and "post_id" in like}


def rate_post(client: ApiClient, post_id: int, like_type: str = "like", known_likes: Optional[Dict[int, str]] = None) -> dict:
    if like_type not in LIKE_TYPES:
        raise ValidationFailed(f"Unknown rating: {like_type}")
    if known_likes and post_id in known_likes:
        raise ValidationFailed("You have already rated this post")
    return client.post("/post-likes", json={
        "post_id": post_id,
        "user_id": _current_user_id(client),
        "like_type": like_type,
    }) or {}


def list_success_stories(client: ApiClient) -> List[dict]:
    return client.get("/success-stories") or []


def submit_success_story(client: ApiClient, title: str, content: str, is_anonymous: bool = False) -> dict:
    """Stories are held for approval by the backend."""
    if not title.strip() or not content.strip():
        raise ValidationFailed("Title and content are required")
    logger.info(f"Submitting success story '{title}'")
    return client.post("/success-stories", json={
        "user_id": _current_user_id(client),
        "title": title,
        "content": content,
        "is_anonymous": is_anonymous,
    }) or {}


# =============================================================================
# ADMIN MODERATION
# =============================================================================

def stories_for_review(client: ApiClient) -> Dict[str, List[dict]]:
    """All success stories split into approved and pending."""
    stories = [s for s in client.get("/admin/success-stories") or [] if isinstance(s, dict)]
    return {
        "approved": [s for s in stories if s.get("is_approved")],
        "pending": [s for s in stories if not s.get("is_approved")],
    }


def approve_story(client: ApiClient, story_id: int) -> dict:
    logger.info(f"Approving success story {story_id}")
    return client.put(f"/success-stories/{story_id}/approve") or {}


def admin_list_topics(client: ApiClient) -> List[dict]:
    return client.get("/admin/forum/topics") or []


def set_topic_pinned(client: ApiClient, topic_id: int, pinned: bool) -> dict:
    return client.put(f"/admin/forum/topics/{topic_id}", json={"is_pinned": pinned}) or {}


def admin_delete_topic(client: ApiClient, topic_id: int) -> None:
    logger.info(f"Deleting forum topic {topic_id}")
    client.delete(f"/admin/forum/topics/{topic_id}")


def admin_update_post(client: ApiClient, post_id: int, content: str) -> dict:
    if not content.strip():
        raise ValidationFailed("Post content is required")
    return client.put(f"/admin/forum/posts/{post_id}", json={"content": content}) or {}
