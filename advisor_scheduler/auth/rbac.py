from fastapi import Depends, HTTPException, status

from advisor_scheduler.auth.dependencies import get_current_user
from advisor_scheduler.auth.schemas import CurrentUser


def require_role(*roles: str):
    """
    Dependency factory restricting a route to the given roles.

    Example:
        Depends(require_role("advisor"))
    """

    async def _checker(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if current_user.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return current_user

    return _checker
