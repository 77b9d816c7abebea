"""To-do tasks and the list that holds them."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterator


@dataclass
class Task:
    """A named task that can be ticked off."""

    name: str = ""
    checked: bool = False


@dataclass
class ToDoList:
    """An ordered list of tasks."""

    tasks: list[Task] = field(default_factory=list)

    def add(self, task: Task) -> None:
        """Append a task."""
        self.tasks.append(task)

    def remove(self, index: int) -> Task:
        """Remove the task at the given position and return it."""
        return self.tasks.pop(index)

    def __getitem__(self, index: int) -> Task:
        return self.tasks[index]

    def __len__(self) -> int:
        return len(self.tasks)

    def __iter__(self) -> Iterator[Task]:
        return iter(self.tasks)

    def __str__(self) -> str:
        return "\n".join(task.name for task in self.tasks)

    def to_json(self) -> list[dict[str, Any]]:
        """The tasks as a JSON array."""
        return [{"task": task.name, "isChecked": task.checked} for task in self.tasks]

    def load_json(self, document: dict[str, Any]) -> None:
        """Add the tasks found under the document's "tasks" key."""
        entries = document.get("tasks")
        if not isinstance(entries, list):
            return
        for entry in entries:
            data = entry if isinstance(entry, dict) else {}
            name = data.get("task")
            checked = data.get("isChecked")
            self.add(
                Task(
                    name=name if isinstance(name, str) else "",
                    checked=checked if isinstance(checked, bool) else False,
                )
            )