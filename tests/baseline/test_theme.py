"""Tests for tlens.engine.theme: display theme preference."""

import pytest

from tlens.engine.store import THEME, ClientStore
from tlens.engine.theme import STYLES, ThemeManager, terminalPrefersDark


def test_default_is_system():
    assert ThemeManager(ClientStore({})).theme == "system"


def test_loads_saved_theme():
    assert ThemeManager(ClientStore({THEME: "light"})).theme == "light"


def test_ignores_garbage_saved_theme():
    assert ThemeManager(ClientStore({THEME: "neon"})).theme == "system"


def test_set_theme_persists():
    store = ClientStore({})
    manager = ThemeManager(store)
    manager.setTheme("dark")

    assert store.get(THEME) == "dark"
    assert ThemeManager(store).theme == "dark"


def test_set_unknown_theme():
    manager = ThemeManager(ClientStore({}))
    with pytest.raises(ValueError):
        manager.setTheme("neon")

    assert manager.theme == "system"


@pytest.mark.parametrize("dark,effective", [(True, "dark"), (False, "light")])
def test_system_follows_preference(dark, effective):
    manager = ThemeManager(ClientStore({}), prefersDark=lambda: dark)
    assert manager.effectiveTheme == effective
    assert manager.style == STYLES[effective]


def test_explicit_theme_ignores_preference():
    manager = ThemeManager(ClientStore({THEME: "light"}), prefersDark=lambda: True)
    assert manager.effectiveTheme == "light"


@pytest.mark.parametrize(
    "colorfgbg,dark",
    [("15;0", True), ("0;15", False), ("0;7", False), ("", True), ("junk", True)],
)
def test_terminal_preference(monkeypatch, colorfgbg, dark):
    monkeypatch.setenv("COLORFGBG", colorfgbg)
    assert terminalPrefersDark() is dark
