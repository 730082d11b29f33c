"""Tests for the Workflow orchestrator: lifecycle, pause/resume/cancel, checkpoints."""

import asyncio

import pytest

from pyflow.core import HookManager, HookType, WorkflowContext
from pyflow.errors import ExecutionError, InvalidStateError, ValidationError
from pyflow.executor import Task, Workflow
from pyflow.models import WorkflowOptions, WorkflowState, WorkflowStatus


def adder(name: str, amount: int, log: list | None = None):
    """Task adding ``amount`` to the previous task's output (or the input)."""

    async def work(ctx):
        if log is not None:
            log.append(name)
        previous = ctx.get("running_total", ctx.input or 0)
        ctx.set("running_total", previous + amount)
        return previous + amount

    return Task(name, work)


class TestExecute:
    @pytest.mark.asyncio
    async def test_runs_tasks_in_order_and_collapses_outputs(self):
        log = []
        workflow = Workflow(
            "sum", [adder("one", 1, log), adder("two", 2, log), adder("three", 3, log)]
        )

        output = await workflow.execute(10)

        assert log == ["one", "two", "three"]
        assert output == {"one": 11, "two": 13, "three": 16}
        assert workflow.context.output == output
        assert workflow.status == WorkflowStatus.COMPLETED
        assert workflow.current_task_index == 3

    @pytest.mark.asyncio
    async def test_context_carries_workflow_identity(self):
        workflow = Workflow("named", [])
        await workflow.execute({"a": 1})
        assert isinstance(workflow.context, WorkflowContext)
        assert workflow.context.workflow_name == "named"
        assert workflow.context.input == {"a": 1}
        assert workflow.context.run_id

    @pytest.mark.asyncio
    async def test_hooks_fire_in_lifecycle_order(self):
        events = []
        hooks = HookManager()
        for hook_type in HookType:
            hooks.register_hook(
                hook_type,
                lambda subject, error, t=hook_type: events.append(
                    (t.value, getattr(subject, "name", None))
                ),
            )

        workflow = Workflow("hooked", [adder("a", 1), adder("b", 1)], hooks)
        await workflow.execute(0)

        assert events == [
            ("onWorkflowStart", None),
            ("onTaskStart", "a"),
            ("onTaskFinish", "a"),
            ("onTaskStart", "b"),
            ("onTaskFinish", "b"),
            ("onAllTasksFinish", None),
            ("onWorkflowFinish", None),
        ]

    @pytest.mark.asyncio
    async def test_middleware_wraps_every_task(self):
        seen = []

        async def record(ctx, call_next):
            seen.append(ctx.workflow_name)
            await call_next()

        workflow = Workflow(
            "wrapped",
            [adder("a", 1), adder("b", 1)],
            options=WorkflowOptions(middleware=[record]),
        )
        await workflow.execute(0)
        assert seen == ["wrapped", "wrapped"]

    @pytest.mark.asyncio
    async def test_checkpoint_after_each_task_names_next_task(self, in_memory_persistence):
        snapshots = []

        def snapshot(name):
            async def work(ctx):
                snapshots.append(await in_memory_persistence.get_workflow_state("ckpt"))
                return name

            return Task(name, work)

        workflow = Workflow("ckpt", [snapshot("a"), snapshot("b")], persistence=in_memory_persistence)
        await workflow.execute()

        assert snapshots == [
            WorkflowState(WorkflowStatus.RUNNING, 0),
            WorkflowState(WorkflowStatus.RUNNING, 1),
        ]
        assert await in_memory_persistence.get_workflow_state("ckpt") == WorkflowState(
            WorkflowStatus.COMPLETED, 2
        )


class TestFailure:
    @pytest.mark.asyncio
    async def test_task_failure_aborts_reports_and_rethrows(self, error_handler, in_memory_persistence):
        log = []
        errors_seen = []

        async def explode(ctx):
            raise RuntimeError("payment gateway down")

        hooks = HookManager()
        hooks.register_hook(HookType.ON_WORKFLOW_ERROR, lambda ctx, e: errors_seen.append(e))

        workflow = Workflow(
            "fails",
            [adder("a", 1, log), Task("explode", explode), adder("c", 1, log)],
            hooks,
            error_handler=error_handler,
            persistence=in_memory_persistence,
        )

        with pytest.raises(ExecutionError) as exc_info:
            await workflow.execute(0)

        assert log == ["a"]
        assert workflow.status == WorkflowStatus.FAILED
        assert error_handler.errors[-1] is exc_info.value
        assert errors_seen == [exc_info.value]
        state = await in_memory_persistence.get_workflow_state("fails")
        assert state == WorkflowState(WorkflowStatus.FAILED, 1)

    @pytest.mark.asyncio
    async def test_failing_error_hook_does_not_mask_task_error(self):
        async def explode(ctx):
            raise RuntimeError("original")

        async def bad_hook(ctx, error):
            raise ValueError("hook failure")

        hooks = HookManager()
        hooks.register_hook(HookType.ON_WORKFLOW_ERROR, bad_hook)
        workflow = Workflow("fails", [Task("explode", explode)], hooks)

        with pytest.raises(ExecutionError):
            await workflow.execute()
        assert workflow.status == WorkflowStatus.FAILED

    @pytest.mark.asyncio
    async def test_validator_lists_all_violations_and_runs_nothing(self):
        log = []

        def validate(data):
            violations = []
            if "email" not in data:
                violations.append("email is required")
            if data.get("age", 0) < 18:
                violations.append("age must be at least 18")
            return violations

        workflow = Workflow("signup", [adder("a", 1, log)], validator=validate)

        with pytest.raises(ValidationError) as exc_info:
            await workflow.execute({"age": 12})

        assert exc_info.value.violations == ["email is required", "age must be at least 18"]
        assert log == []

    @pytest.mark.asyncio
    async def test_async_validator_accepting_input(self):
        async def validate(data):
            return []

        workflow = Workflow("ok", [adder("a", 1)])
        workflow.set_validator(validate)
        assert await workflow.execute(1) == {"a": 2}


class TestPauseResume:
    @staticmethod
    def build(log, pause_after_second: bool, persistence=None):
        holder = {}

        async def second(ctx):
            log.append("second")
            if pause_after_second:
                await holder["workflow"].pause()
            previous = ctx.get("running_total", ctx.input or 0)
            ctx.set("running_total", previous * 10)
            return previous * 10

        workflow = Workflow(
            "pausable",
            [adder("first", 1, log), Task("second", second), adder("third", 3, log), adder("fourth", 4, log)],
            persistence=persistence,
        )
        holder["workflow"] = workflow
        return workflow

    @pytest.mark.asyncio
    async def test_resume_runs_only_the_remaining_tasks(self):
        baseline_log = []
        baseline = await self.build(baseline_log, pause_after_second=False).execute(5)

        log = []
        workflow = self.build(log, pause_after_second=True)

        partial = await workflow.execute(5)
        assert partial is None
        assert workflow.status == WorkflowStatus.PAUSED
        assert workflow.current_task_index == 2
        assert log == ["first", "second"]

        output = await workflow.resume()

        assert log == ["first", "second", "third", "fourth"]
        assert output == baseline
        assert workflow.status == WorkflowStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_pause_is_checkpointed(self, in_memory_persistence):
        workflow = self.build([], pause_after_second=True, persistence=in_memory_persistence)

        await workflow.execute(5)

        state = await in_memory_persistence.get_workflow_state("pausable")
        assert state == WorkflowState(WorkflowStatus.PAUSED, 2)

    @pytest.mark.asyncio
    async def test_resume_requires_paused_status(self):
        workflow = Workflow("idle", [])
        with pytest.raises(InvalidStateError):
            await workflow.resume()

        await workflow.execute()
        with pytest.raises(InvalidStateError):
            await workflow.resume()

    @pytest.mark.asyncio
    async def test_pause_when_not_running_is_a_no_op(self, caplog):
        workflow = Workflow("idle", [])
        await workflow.pause()
        assert workflow.status == WorkflowStatus.PENDING
        assert "Cannot pause" in caplog.text

    @pytest.mark.asyncio
    async def test_resume_is_rejected_until_the_running_task_finishes(self):
        runs = []
        gate = asyncio.Event()
        entered = asyncio.Event()

        async def slow(ctx):
            runs.append("slow")
            entered.set()
            await gate.wait()
            return "slow done"

        async def last(ctx):
            runs.append("last")
            return "last done"

        workflow = Workflow("gated", [Task("slow", slow), Task("last", last)])
        running = asyncio.create_task(workflow.execute())
        await entered.wait()

        await workflow.pause()
        assert workflow.status == WorkflowStatus.PAUSED
        with pytest.raises(InvalidStateError, match="still running"):
            await workflow.resume()

        gate.set()
        assert await running is None
        assert workflow.current_task_index == 1

        output = await workflow.resume()
        assert runs == ["slow", "last"]
        assert output == {"slow": "slow done", "last": "last done"}
        assert workflow.status == WorkflowStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_restored_instance_resumes_like_the_original(self, in_memory_persistence):
        original_log = []
        original = self.build(original_log, pause_after_second=True, persistence=in_memory_persistence)
        await original.execute(5)

        restored_log = []
        restored = self.build(restored_log, pause_after_second=False)
        state = await in_memory_persistence.get_workflow_state("pausable")
        restored.restore_state(state)

        assert restored.status == WorkflowStatus.PAUSED
        assert restored.current_task_index == 2

        output = await restored.resume()
        assert restored_log == ["third", "fourth"]
        assert restored.status == WorkflowStatus.COMPLETED
        # Task outputs are not persisted: only tasks after the cursor contribute
        assert list(output) == ["third", "fourth"]

        await original.resume()
        assert original_log[2:] == restored_log


class TestCancel:
    @pytest.mark.asyncio
    async def test_cancel_stops_later_tasks_and_keeps_earlier_outputs(self, in_memory_persistence):
        log = []
        holder = {}

        async def cancels(ctx):
            log.append("cancels")
            await holder["workflow"].cancel()
            return "cancelled here"

        workflow = Workflow(
            "cancellable",
            [adder("first", 1, log), Task("cancels", cancels), adder("never", 1, log)],
            persistence=in_memory_persistence,
        )
        holder["workflow"] = workflow

        await workflow.execute(0)

        assert log == ["first", "cancels"]
        assert workflow.status == WorkflowStatus.CANCELLED
        assert workflow.context.get_task_output("first") == 1
        assert workflow.context.get_task_output("cancels") == "cancelled here"
        assert not workflow.context.has_task_output("never")
        state = await in_memory_persistence.get_workflow_state("cancellable")
        assert state.status == WorkflowStatus.CANCELLED

    @pytest.mark.asyncio
    async def test_cancel_a_paused_workflow(self, in_memory_persistence):
        workflow = TestPauseResume.build([], pause_after_second=True, persistence=in_memory_persistence)
        await workflow.execute(1)

        await workflow.cancel()

        assert workflow.status == WorkflowStatus.CANCELLED
        with pytest.raises(InvalidStateError):
            await workflow.resume()
        state = await in_memory_persistence.get_workflow_state("pausable")
        assert state == WorkflowState(WorkflowStatus.CANCELLED, 2)

    @pytest.mark.asyncio
    async def test_cancel_when_finished_is_a_no_op(self):
        workflow = Workflow("done", [])
        await workflow.execute()
        await workflow.cancel()
        assert workflow.status == WorkflowStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_execute_again_resets_flags_and_cursor(self):
        log = []
        holder = {"cancel": True}

        async def maybe_cancel(ctx):
            if holder["cancel"]:
                await holder["workflow"].cancel()

        workflow = Workflow("rerun", [Task("maybe_cancel", maybe_cancel), adder("after", 1, log)])
        holder["workflow"] = workflow

        await workflow.execute(0)
        assert log == []

        holder["cancel"] = False
        await workflow.execute(0)
        assert log == ["after"]
        assert workflow.status == WorkflowStatus.COMPLETED


def test_get_tasks_status_lists_every_task():
    workflow = Workflow("status", [adder("a", 1), adder("b", 2)])
    assert [entry["name"] for entry in workflow.get_tasks_status()] == ["a", "b"]
    assert all(str(entry["status"]) == "Pending" for entry in workflow.get_tasks_status())
