"""
services/analytics/referrals.py

Referral workflow:

    pending --accept--> in_progress --return_to_deputy(outcome)--> returned_to_deputy --close(decision)--> resolved
                             \\------------------------close(decision)-------------------------------------^

accept / return_to_deputy belong to the counselor, close to the deputy.
There is no way back and no delete. No version check: concurrent transitions are last-write-wins.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, Optional, Tuple

from schemas.enums import ReferralStatus, PERM_COUNSELOR, PERM_DEPUTY
from services.exceptions import InvalidTransition, ValidationFailed


class ReferralAction(str, Enum):
    ACCEPT = "accept"
    RETURN_TO_DEPUTY = "return_to_deputy"
    CLOSE = "close"


TRANSITIONS: Dict[Tuple[ReferralStatus, ReferralAction], ReferralStatus] = {
    (ReferralStatus.PENDING, ReferralAction.ACCEPT): ReferralStatus.IN_PROGRESS,
    (ReferralStatus.IN_PROGRESS, ReferralAction.RETURN_TO_DEPUTY): ReferralStatus.RETURNED_TO_DEPUTY,
    (ReferralStatus.RETURNED_TO_DEPUTY, ReferralAction.CLOSE): ReferralStatus.RESOLVED,
    (ReferralStatus.IN_PROGRESS, ReferralAction.CLOSE): ReferralStatus.RESOLVED,
}

# permission key required for each action
ACTION_PERMISSION = {
    ReferralAction.ACCEPT: PERM_COUNSELOR,
    ReferralAction.RETURN_TO_DEPUTY: PERM_COUNSELOR,
    ReferralAction.CLOSE: PERM_DEPUTY,
}


def next_status(current: str, action: ReferralAction) -> ReferralStatus:
    target = TRANSITIONS.get((ReferralStatus(current), action))
    if target is None:
        raise InvalidTransition(f"لا يمكن تنفيذ الإجراء ({action.value}) على إحالة حالتها ({current})")
    return target


def apply_transition(current: str, action: ReferralAction, text: Optional[str] = None) -> dict:
    """
    Validate one transition and return the field patch to write.
    - return_to_deputy needs the counselor's outcome
    - close needs the deputy's decision
    """
    target = next_status(current, action)
    patch = {"status": target.value}
    if action == ReferralAction.RETURN_TO_DEPUTY:
        if not text or not text.strip():
            raise ValidationFailed("يرجى كتابة نتيجة الإحالة قبل إعادتها للوكيل")
        patch["outcome"] = text.strip()
    elif action == ReferralAction.CLOSE:
        if not text or not text.strip():
            raise ValidationFailed("يرجى كتابة القرار النهائي قبل إغلاق الإحالة")
        patch["decision"] = text.strip()
    return patch
