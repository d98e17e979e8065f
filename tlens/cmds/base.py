"""Command plumbing.

Every REPL command is an Op dataclass registered under one or more names
with @command. Commands can be typed by any unambiguous prefix ('disc' runs
'disconnect').
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, TypeVar

from loguru import logger

from tlens.engine.views import ConnectPrompt, View

if TYPE_CHECKING:
    from tlens.cli import TruthLensApp

# command name -> Op class
REGISTRY: dict[str, type[Op]] = {}

# category -> primary command names
CATEGORIES: dict[str, list[str]] = defaultdict(list)

V = TypeVar("V", bound=View)


class UsageError(ValueError):
    pass


def command(names: list[str], category: str = "Other") -> Callable[[type[Op]], type[Op]]:
    def register(cls: type[Op]) -> type[Op]:
        for name in names:
            REGISTRY[name] = cls

        CATEGORIES[category].append(names[0])
        return cls

    return register


def resolve(typed: str) -> str | None:
    """Full command name for 'typed' (exact or unique prefix), else None."""
    typed = typed.lower()
    if typed in REGISTRY:
        return typed

    matches = [name for name in REGISTRY if name.startswith(typed)]
    if len(matches) == 1:
        return matches[0]

    return None


def describe(name: str) -> str:
    cls = REGISTRY.get(name)
    if cls and cls.__doc__:
        return cls.__doc__.strip().split("\n")[0]

    return ""


async def runop(cmd: str, rest: str | None, state: TruthLensApp) -> Any:
    name = resolve(cmd)
    if not name:
        raise UsageError(f"Unknown command: {cmd} ('help' lists commands)")

    op = REGISTRY[name](state, rest.split() if rest else [])
    op.setup()
    return await op.run()


@dataclass
class Op:
    state: TruthLensApp
    args: list[str] = field(default_factory=list)

    def setup(self) -> None:
        """Validate/convert 'args' (raise UsageError on bad input)."""

    async def run(self) -> Any:
        raise NotImplementedError

    @property
    def wallet(self):
        return self.state.wallet

    @property
    def router(self):
        return self.state.router

    @property
    def gateway(self):
        return self.state.gateway

    def show(self, lines: list[str]) -> None:
        for line in lines:
            logger.info("{}", line)

    async def page(self, path: str, kind: type[V]) -> V | None:
        """Make 'path' the current view (reusing it if already open).

        Returns None, after showing the connect prompt, if the guard refused."""
        if isinstance(self.router.current, kind) and self.router.path == path:
            return self.router.current

        view = await self.router.navigate(path)
        if isinstance(view, ConnectPrompt):
            self.show(view.render())
            return None

        return view  # type: ignore
