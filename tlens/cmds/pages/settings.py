"""Commands: settings, theme

Category: Settings
"""

import dataclasses
from dataclasses import dataclass, field

from loguru import logger

from tlens.cmds.base import Op, UsageError, command
from tlens.engine.theme import THEMES
from tlens.engine.views import SettingsView

SETTINGS_ACTIONS = ("get", "set", "save", "apikey")


def parseBool(val: str) -> bool:
    match val.lower():
        case "1" | "true" | "yes" | "on":
            return True
        case "0" | "false" | "no" | "off":
            return False

    raise UsageError(f"Not a boolean: {val}")


@command(names=["settings"], category="Settings")
@dataclass
class OpSettings(Op):
    """User settings: settings [get | set <section>.<key> <value> | save | apikey]"""

    action: str = field(init=False, default="get")

    def setup(self):
        if self.args:
            self.action = self.args[0].lower()

        if self.action not in SETTINGS_ACTIONS:
            raise UsageError(f"Usage: settings [{'|'.join(SETTINGS_ACTIONS)}]")

        if self.action == "set" and len(self.args) != 3:
            raise UsageError("Usage: settings set <section>.<key> <value>  (example: privacy.shareAnalytics off)")

    async def run(self):
        view = await self.page(SettingsView.path, SettingsView)
        if not view:
            return

        match self.action:
            case "get":
                self.show(view.render())
            case "set":
                view.widgets["settings"].data = self.updated(view)
                logger.info("Updated (not saved yet, use 'settings save')")
            case "save":
                if await view.save():
                    logger.info("Settings saved")
            case "apikey":
                if key := await view.generateApiKey():
                    logger.info("New API key: {}", key)

    def updated(self, view: SettingsView):
        path, raw = self.args[1], self.args[2]
        section, _, key = path.partition(".")

        current = view.settings
        group = getattr(current, section, None)
        if group is None or not dataclasses.is_dataclass(group) or key not in {
            f.name for f in dataclasses.fields(group)
        }:
            raise UsageError(f"Unknown setting: {path}")

        value = parseBool(raw) if isinstance(getattr(group, key), bool) else raw
        return dataclasses.replace(current, **{section: dataclasses.replace(group, **{key: value})})


@command(names=["theme"], category="Settings")
@dataclass
class OpTheme(Op):
    """Show or set the display theme: theme [light|dark|system]"""

    theme: str | None = field(init=False, default=None)

    def setup(self):
        if self.args:
            self.theme = self.args[0].lower()
            if self.theme not in THEMES:
                raise UsageError(f"Usage: theme [{'|'.join(THEMES)}]")

    async def run(self):
        if self.theme:
            self.state.setTheme(self.theme)

        logger.info("Theme: {} (effective {})", self.state.theme.theme, self.state.theme.effectiveTheme)
