"""Command: taskcancel

Category: Task Management
"""

from dataclasses import dataclass, field

from loguru import logger

from tlens.cmds.base import Op, UsageError, command


@command(names=["taskcancel"], category="Task Management")
@dataclass
class OpTaskCancel(Op):
    """Cancel one or more running background tasks by ID."""

    ids: list[int] = field(init=False, default_factory=list)

    def setup(self):
        try:
            self.ids = list(map(int, self.args))
        except ValueError as e:
            raise UsageError("Usage: taskcancel <id> [id...]") from e

    async def run(self):
        for taskid in self.ids:
            logger.info("[{}] Stopping task...", taskid)
            if not self.state.task_stop_id(taskid):
                logger.warning("[{}] No such task", taskid)
