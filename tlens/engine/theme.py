"""Display theme preference (light / dark / follow the system)."""

from __future__ import annotations

import os
from collections.abc import Callable
from typing import Final, Literal, get_args

from loguru import logger

from tlens.engine.store import THEME, ClientStore

Theme = Literal["light", "dark", "system"]
EffectiveTheme = Literal["light", "dark"]

THEMES: Final = get_args(Theme)

# toolbar colors per effective theme
STYLES: Final[dict[str, str]] = dict(
    light="fg:#002B36 bg:#EEE8D5",
    dark="fg:#EEE8D5 bg:#073642",
)


def terminalPrefersDark() -> bool:
    """Guess dark mode from the terminal's COLORFGBG ("fg;bg") convention.

    Background color indexes 0-6 and 8 are dark; no hint means dark, since
    that's what most terminals ship with."""
    colors = os.getenv("COLORFGBG", "")
    if not colors:
        return True

    try:
        bg = int(colors.split(";")[-1])
    except ValueError:
        return True

    return bg in {0, 1, 2, 3, 4, 5, 6, 8}


class ThemeManager:
    def __init__(self, store: ClientStore, prefersDark: Callable[[], bool] = terminalPrefersDark):
        self.store = store
        self.prefersDark = prefersDark

        saved = store.get(THEME)
        self.theme: Theme = saved if saved in THEMES else "system"

    def setTheme(self, theme: str) -> Theme:
        if theme not in THEMES:
            raise ValueError(f"Unknown theme '{theme}'. Valid: {', '.join(THEMES)}")

        self.theme = theme  # type: ignore
        self.store.set(THEME, theme)
        logger.info("Theme set to {} (effective: {})", theme, self.effectiveTheme)
        return self.theme

    @property
    def effectiveTheme(self) -> EffectiveTheme:
        if self.theme == "system":
            return "dark" if self.prefersDark() else "light"

        return self.theme

    @property
    def style(self) -> str:
        return STYLES[self.effectiveTheme]
