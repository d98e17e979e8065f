"""Tests for tlens.engine.session: the session record."""

import pytest

from tlens.engine.session import ErrorKind, WalletError, WalletSession


def test_starts_disconnected():
    session = WalletSession()
    assert not session.connected
    assert session.account is None
    assert session.consistent()


def test_apply_then_reset():
    session = WalletSession(lastError=WalletError(ErrorKind.UserRejected, "no"))
    session.apply("0xabc", "1.0", 97)

    assert session.connected
    assert session.lastError is None
    assert session.consistent()

    session.reset()
    assert (session.connected, session.account, session.balance, session.chainId) == (False, None, None, None)
    assert session.consistent()


def test_apply_requires_account():
    with pytest.raises(AssertionError):
        WalletSession().apply("", "1.0", 97)


def test_inconsistent_shapes_detected():
    assert not WalletSession(connected=True).consistent()
    assert not WalletSession(account="0xabc").consistent()
    assert not WalletSession(balance="1.0").consistent()


def test_snapshot_independent():
    session = WalletSession()
    session.apply("0xabc", "1.0", 97)
    snap = session.snapshot()
    session.reset()
    assert snap.account == "0xabc"


def test_error_str():
    assert str(WalletError(ErrorKind.UserRejected, "rejected", 4001)) == "UserRejected [code 4001]: rejected"
    assert str(WalletError(ErrorKind.ProviderMissing, "none")) == "ProviderMissing: none"
