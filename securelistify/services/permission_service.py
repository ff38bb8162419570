"""
Checklist access rules.

    read   — owner, or any shared_with entry (read or write)
    write  — owner, or a shared_with entry with permission "write"
    owner  — delete and sharing management; never granted through sharing

``require_*`` helpers raise ForbiddenError; the ``can_*`` predicates are
used where a boolean is enough (listing, serialization).
"""

import logging

from securelistify.core.exceptions import ForbiddenError

logger = logging.getLogger(__name__)


def is_owner(user, checklist) -> bool:
    return checklist.created_by_id == user.id


def can_read(user, checklist) -> bool:
    return is_owner(user, checklist) or checklist.find_share(user.id) is not None


def can_write(user, checklist) -> bool:
    if is_owner(user, checklist):
        return True
    share = checklist.find_share(user.id)
    return share is not None and share.permission == "write"


def _deny(user, checklist, action: str, message: str):
    logger.warning(
        "Checklist %s denied checklist_id=%s user_id=%s", action, checklist.id, user.id,
        extra={"checklist_id": checklist.id, "user_id": user.id},
    )
    raise ForbiddenError(message, resource="Checklist", resource_id=checklist.id)


def require_read(user, checklist) -> None:
    if not can_read(user, checklist):
        _deny(user, checklist, "read", "Not authorized to access this checklist")


def require_write(user, checklist) -> None:
    if not can_write(user, checklist):
        _deny(user, checklist, "write", "Not authorized to update this checklist")


def require_owner(user, checklist, action: str = "manage") -> None:
    if not is_owner(user, checklist):
        _deny(user, checklist, action, f"Only the checklist owner can {action} it")
