"""Command: tasks

Category: Task Management
"""

from dataclasses import dataclass

from tlens.cmds.base import Op, command


@command(names=["tasks", "tasklist"], category="Task Management")
@dataclass
class OpTaskList(Op):
    """Display all current and running background tasks."""

    async def run(self):
        self.state.task_report()
