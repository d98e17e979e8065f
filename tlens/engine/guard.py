"""Access guard: the one place deciding if the wallet state allows protected views.

Every protected view, link, and navigation check goes through
canAccessProtected() instead of re-deriving "is the wallet connected"
on its own.
"""

from __future__ import annotations

from typing import Final

from tlens.engine.session import WalletSession

PROTECTED_PREFIX: Final = "/dashboard"
DASHBOARD_ROUTE: Final = "/dashboard"


def canAccessProtected(connected: bool, account: str | None) -> bool:
    # the connected flag alone is never enough: an account must exist too
    return bool(connected) and bool(account)


def canAccess(session: WalletSession) -> bool:
    return canAccessProtected(session.connected, session.account)


def isProtectedPath(path: str) -> bool:
    return path == PROTECTED_PREFIX or path.startswith(PROTECTED_PREFIX + "/")


def protectedHref(session: WalletSession, target: str = DASHBOARD_ROUTE) -> str | None:
    """Return 'target' if the session may follow the link, else None (caller should prompt to connect)."""
    if not isProtectedPath(target) or canAccess(session):
        return target

    return None
