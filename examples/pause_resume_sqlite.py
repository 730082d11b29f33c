"""
Pause, Checkpoint and Resume with SQLite

Demonstrates checkpointed recovery: one manager pauses a workflow midway,
a second manager (sharing the same SQLite file) restores the checkpoint
and resumes from the next task.

## Verification

- Tasks before the pause run once, in the first manager
- Tasks after the pause run once, in the second manager
- The checkpoint stored at the pause names the next task to run

## Run with
```bash
PYTHONPATH=src python3 examples/pause_resume_sqlite.py
```
"""

import asyncio
import logging
import tempfile
from pathlib import Path

from pyflow import FlowManager, WorkflowStatus
from pyflow.storage import SqlitePersistence

logging.basicConfig(level=logging.CRITICAL)

EXECUTIONS: list[str] = []


def build(manager: FlowManager, pause_after_extract: bool):
    async def extract(ctx):
        EXECUTIONS.append("extract")
        if pause_after_extract:
            await manager.pause_workflow("etl")
        return [3, 1, 2]

    async def transform(ctx):
        EXECUTIONS.append("transform")
        return "sorted"

    async def load(ctx):
        EXECUTIONS.append("load")
        return "loaded"

    return manager.build_workflow(
        manager.create_workflow("etl")
        .add_step("extract", extract)
        .add_step("transform", transform)
        .add_step("load", load)
    )


async def main():
    db_path = Path(tempfile.mkdtemp()) / "pyflow.db"

    storage = SqlitePersistence(str(db_path))
    await storage.connect()
    first = FlowManager(persistence=storage)
    workflow = build(first, pause_after_extract=True)
    await workflow.execute()
    print(f"First manager: {workflow.status}, executed {EXECUTIONS}")
    await storage.close()

    storage = SqlitePersistence(str(db_path))
    await storage.connect()
    second = FlowManager(persistence=storage)
    build(second, pause_after_extract=False)

    restored = await second.restore_workflow("etl")
    print(f"Checkpoint: {restored.status} at task {restored.current_task_index}")
    output = await second.resume_workflow("etl")
    await storage.close()

    print(f"Second manager output: {output}")
    print(f"All executions: {EXECUTIONS}")
    assert EXECUTIONS == ["extract", "transform", "load"]
    assert restored.status == WorkflowStatus.COMPLETED


if __name__ == "__main__":
    asyncio.run(main())
