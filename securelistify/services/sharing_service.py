"""
Sharing Service — grant and revoke per-user access to a checklist.

Only the owner manages shares. A user appears at most once in
``shared_with``; sharing again overwrites the permission in place.
"""

import logging

from securelistify.core.exceptions import NotFoundError, ValidationError
from securelistify.models import db
from securelistify.models.checklist import SHARE_PERMISSIONS, ChecklistShare
from securelistify.services import checklist_service
from securelistify.services.user_service import get_user_by_email
from securelistify.utils.helpers import require_choice, require_mapping

logger = logging.getLogger(__name__)


def share_checklist(caller, checklist_id: str, data):
    """Grant ``permission`` on the checklist to the user with ``email``."""
    checklist = checklist_service.get_owned_checklist(caller, checklist_id, "share")
    data = require_mapping(data)
    permission = require_choice(data, "permission", SHARE_PERMISSIONS)
    email = data.get("email")
    if not isinstance(email, str) or not email.strip():
        raise ValidationError("email is required", details={"email": "required"})

    target = get_user_by_email(email)
    if target is None:
        raise NotFoundError(resource="User", resource_id=email.strip().lower())

    share = checklist.find_share(target.id)
    if share is None:
        checklist.shares.append(ChecklistShare(user=target, permission=permission))
    else:
        share.permission = permission
    checklist_service.touch(checklist, caller)
    checklist_service.commit_checklist(checklist)
    logger.info("Checklist shared checklist_id=%s target_user_id=%s permission=%s",
                checklist.id, target.id, permission,
                extra={"checklist_id": checklist.id, "user_id": caller.id})
    return checklist


def unshare_checklist(caller, checklist_id: str, target_user_id: int):
    """Revoke access; unknown targets are a no-op."""
    checklist = checklist_service.get_owned_checklist(caller, checklist_id, "share")
    share = checklist.find_share(target_user_id)
    if share is not None:
        checklist.shares.remove(share)
    checklist_service.touch(checklist, caller)
    checklist_service.commit_checklist(checklist)
    logger.info("Checklist unshared checklist_id=%s target_user_id=%s removed=%s",
                checklist.id, target_user_id, share is not None,
                extra={"checklist_id": checklist.id, "user_id": caller.id})
    return checklist
