"""
Small DAG runner for intake processing.

Tasks run in dependency order and exchange data through a shared context
dict. A task whose upstream did not succeed is skipped, so a failure stops
everything downstream of it: a rejected intake is never assessed, and a
failed assessment is never persisted.
"""

from __future__ import annotations

import logging
import time
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable

logger = logging.getLogger(__name__)

TaskFn = Callable[[dict[str, Any]], dict[str, Any] | None]


class TaskStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class TaskNode:
    name: str
    execute_fn: TaskFn
    depends_on: list[str] = field(default_factory=list)
    status: TaskStatus = TaskStatus.PENDING
    result: dict[str, Any] = field(default_factory=dict)
    error: str | None = None
    duration_ms: float = 0.0


@dataclass
class DagRun:
    """Outcome of one :meth:`DAG.run`."""

    pipeline: str
    status: str
    tasks: dict[str, dict[str, Any]]
    context: dict[str, Any]

    @property
    def succeeded(self) -> bool:
        return self.status == "completed"

    def failed_tasks(self) -> list[str]:
        return [name for name, info in self.tasks.items() if info["status"] == TaskStatus.FAILED.value]

    def summary(self) -> dict[str, Any]:
        return {"pipeline": self.pipeline, "status": self.status, "tasks": self.tasks}


class DAG:
    """
    Directed acyclic graph of tasks.

        dag = DAG("intake")
        dag.add_task("validate_intake", validate_intake)
        dag.add_task("assess", assess, depends_on=["validate_intake"])
        run = dag.run({"intake": {...}})
    """

    def __init__(self, name: str):
        self.name = name
        self.tasks: dict[str, TaskNode] = {}

    def add_task(self, name: str, execute_fn: TaskFn, depends_on: list[str] | None = None) -> DAG:
        if name in self.tasks:
            raise ValueError(f"Duplicate task name: {name}")
        self.tasks[name] = TaskNode(name=name, execute_fn=execute_fn, depends_on=list(depends_on or []))
        return self

    def execution_order(self) -> list[str]:
        """Kahn's algorithm. Ties keep insertion order."""
        in_degree: dict[str, int] = {}
        for task in self.tasks.values():
            for dep in task.depends_on:
                if dep not in self.tasks:
                    raise ValueError(f"Task '{task.name}' depends on unknown task '{dep}'")
            in_degree[task.name] = len(task.depends_on)

        ready = deque(name for name, degree in in_degree.items() if degree == 0)
        order: list[str] = []
        while ready:
            current = ready.popleft()
            order.append(current)
            for name, task in self.tasks.items():
                if current in task.depends_on:
                    in_degree[name] -= 1
                    if in_degree[name] == 0:
                        ready.append(name)

        if len(order) != len(self.tasks):
            raise ValueError(f"Cycle detected in DAG '{self.name}'")
        return order

    def _reset(self) -> None:
        for task in self.tasks.values():
            task.status = TaskStatus.PENDING
            task.result = {}
            task.error = None
            task.duration_ms = 0.0

    def run(self, initial_context: dict[str, Any] | None = None) -> DagRun:
        order = self.execution_order()
        self._reset()
        context = dict(initial_context or {})
        tasks: dict[str, dict[str, Any]] = {}

        logger.info("Starting pipeline '%s' with %d tasks", self.name, len(self.tasks))

        for task_name in order:
            task = self.tasks[task_name]

            if any(self.tasks[dep].status != TaskStatus.SUCCESS for dep in task.depends_on):
                task.status = TaskStatus.SKIPPED
                logger.warning("Skipping '%s': upstream task did not succeed", task_name)
                tasks[task_name] = {"status": task.status.value}
                continue

            task.status = TaskStatus.RUNNING
            logger.info("Running task '%s'", task_name)
            start = time.perf_counter()
            try:
                task.result = task.execute_fn(context) or {}
                context.update(task.result)
                task.status = TaskStatus.SUCCESS
            # Task bodies are arbitrary; any failure is recorded and stops downstream work.
            except Exception as exc:
                task.status = TaskStatus.FAILED
                task.error = f"{type(exc).__name__}: {exc}"
                logger.error("Task '%s' failed: %s", task_name, type(exc).__name__)
            finally:
                task.duration_ms = (time.perf_counter() - start) * 1000

            tasks[task_name] = {
                "status": task.status.value,
                "duration_ms": round(task.duration_ms, 2),
                "error": task.error,
            }

        status = "completed" if all(t.status == TaskStatus.SUCCESS for t in self.tasks.values()) else "failed"
        logger.info("Pipeline '%s' finished: %s", self.name, status)
        return DagRun(pipeline=self.name, status=status, tasks=tasks, context=context)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "tasks": {name: {"depends_on": task.depends_on} for name, task in self.tasks.items()},
        }
