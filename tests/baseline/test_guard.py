"""Tests for tlens.engine.guard: the access predicate."""

import pytest

from tlens.engine.guard import canAccess, canAccessProtected, isProtectedPath, protectedHref
from tlens.engine.session import WalletSession

ACCOUNT = "0x" + "ab" * 20


class TestCanAccessProtected:
    @pytest.mark.parametrize(
        "connected,account,expected",
        [
            (True, ACCOUNT, True),
            (True, None, False),
            (True, "", False),
            (False, ACCOUNT, False),
            (False, None, False),
        ],
    )
    def test_truth_table(self, connected, account, expected):
        assert canAccessProtected(connected, account) is expected

    def test_session_variant(self):
        session = WalletSession()
        assert not canAccess(session)

        session.apply(ACCOUNT, "1.0", 97)
        assert canAccess(session)

        session.reset()
        assert not canAccess(session)


class TestPaths:
    @pytest.mark.parametrize(
        "path,expected",
        [
            ("/", False),
            ("/dashboard", True),
            ("/dashboard/markets-hub", True),
            ("/dashboard/settings", True),
            ("/dashboards", False),
        ],
    )
    def test_isProtectedPath(self, path, expected):
        assert isProtectedPath(path) is expected

    def test_protectedHref(self):
        session = WalletSession()
        assert protectedHref(session) is None
        assert protectedHref(session, "/") == "/"

        session.apply(ACCOUNT, "1.0", 97)
        assert protectedHref(session) == "/dashboard"
        assert protectedHref(session, "/dashboard/status") == "/dashboard/status"
