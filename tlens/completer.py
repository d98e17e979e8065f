"""Command autocompletion for the TruthLens REPL.

Completes command names (with docstring descriptions) and arguments for the
commands that take a known set of values (page paths, market ids, networks,
themes, subcommands).
"""

from prompt_toolkit.completion import Completer, Completion

from tlens.cmds.base import REGISTRY, describe, resolve
from tlens.cmds.pages.settings import SETTINGS_ACTIONS
from tlens.cmds.pages.status import AI_ACTIONS
from tlens.cmds.utilities.control import LEVELS
from tlens.engine.networks import NETWORKS
from tlens.engine.theme import THEMES


class CommandCompleter(Completer):
    """Completer for tlens commands and their arguments."""

    # Fixed argument values per resolved command
    _FIXED = {
        "ai": AI_ACTIONS,
        "settings": SETTINGS_ACTIONS,
        "theme": THEMES,
        "loglevel": LEVELS,
    }

    # Map resolved command names to argument completer method names
    _ARG_COMPLETERS = {
        "go": "_complete_paths",
        "market": "_complete_markets",
        "network": "_complete_networks",
    }

    def __init__(self, app):
        """app is the TruthLensApp instance."""
        self.app = app

    def get_completions(self, document, complete_event):
        text = document.text_before_cursor

        # Handle multi-command: only complete the text after the last ";"
        last_semi = text.rfind(";")
        segment = text[last_semi + 1 :].lstrip() if last_semi >= 0 else text

        parts = segment.split(None, 1)
        if len(parts) <= 1 and not segment.endswith(" "):
            # Still typing the command name
            prefix = parts[0] if parts else ""
            yield from self._complete_command_name(prefix)
        else:
            cmd_name = parts[0]
            arg_text = parts[1] if len(parts) > 1 else ""
            yield from self._complete_arguments(cmd_name, arg_text)

    def _complete_command_name(self, prefix):
        prefix_lower = prefix.lower()
        for cmd_name in sorted(REGISTRY):
            if cmd_name.startswith(prefix_lower):
                yield Completion(cmd_name, start_position=-len(prefix), display_meta=describe(cmd_name))

    def _complete_arguments(self, cmd_name, arg_text):
        resolved = resolve(cmd_name) or cmd_name.lower()

        # only the first argument is completed
        words = arg_text.split()
        if len(words) > 1 or (words and arg_text.endswith(" ")):
            return

        current_word = words[0] if words else ""

        if values := self._FIXED.get(resolved):
            for val in values:
                if val.lower().startswith(current_word.lower()):
                    yield Completion(val, start_position=-len(current_word))

            return

        if method_name := self._ARG_COMPLETERS.get(resolved):
            yield from getattr(self, method_name)(current_word)

    def _complete_paths(self, prefix):
        for path, title in self.app.router.visibleLinks():
            if path.startswith(prefix):
                yield Completion(path, start_position=-len(prefix), display_meta=title)

    def _complete_markets(self, prefix):
        view = self.app.router.current
        widgets = getattr(view, "widgets", {})
        markets = widgets["markets"].data if "markets" in widgets else None

        for m in markets or []:
            if m.market_id.lower().startswith(prefix.lower()):
                yield Completion(m.market_id, start_position=-len(prefix), display_meta=m.title)

    def _complete_networks(self, prefix):
        for chainId, net in NETWORKS.items():
            if str(chainId).startswith(prefix):
                yield Completion(str(chainId), start_position=-len(prefix), display_meta=net.name)
