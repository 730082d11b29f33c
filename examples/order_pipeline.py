"""
Order Pipeline

Demonstrates sequential, parallel and conditional steps with per-task
retry/backoff and timeout policies, middleware and lifecycle hooks.

## How It Works

1. "validate" checks the input (a validator rejects bad orders up front)
2. "reserve_stock" and "charge_card" run in parallel
   - charge_card fails twice with a transient error, then succeeds
3. "express_courier" only runs for express orders
4. The collapsed output maps every task name to its result

## Run with
```bash
PYTHONPATH=src python3 examples/order_pipeline.py
```
"""

import asyncio
import time

from pyflow import (
    BackoffOptions,
    FlowManager,
    HookType,
    RetryableError,
    Task,
    TaskOptions,
    WorkflowOptions,
    configure_logging,
)

CHARGE_ATTEMPTS = 0


class GatewayError(RetryableError):
    """Payment gateway hiccup - safe to retry."""

    pass


def validate_order(order) -> list[str]:
    violations = []
    if not order.get("items"):
        violations.append("order has no items")
    if order.get("total", 0) <= 0:
        violations.append("total must be positive")
    return violations


async def timing(ctx, call_next):
    started = time.monotonic()
    await call_next()
    ctx.set("elapsed_ms", int((time.monotonic() - started) * 1000))


async def validate(ctx):
    return {"order_id": ctx.input["order_id"], "items": len(ctx.input["items"])}


async def reserve_stock(ctx):
    await asyncio.sleep(0.05)
    return f"reserved {len(ctx.input['items'])} items"


async def charge_card(ctx):
    global CHARGE_ATTEMPTS
    CHARGE_ATTEMPTS += 1
    if CHARGE_ATTEMPTS < 3:
        raise GatewayError(f"gateway busy (attempt {CHARGE_ATTEMPTS})")
    return f"charged {ctx.input['total']}"


async def book_courier(ctx):
    return "courier booked"


async def main():
    configure_logging("info")
    manager = FlowManager()

    charge = manager.create_task(
        "charge_card",
        charge_card,
        TaskOptions(
            retry_count=3,
            backoff=BackoffOptions("exponential", delay_ms=50, max_delay_ms=500),
            timeout_ms=1000,
        ),
    )
    reserve = manager.create_task("reserve_stock", reserve_stock, TaskOptions(timeout_ms=500))
    courier = Task("express_courier", book_courier)

    builder = (
        manager.create_workflow("orders", WorkflowOptions(middleware=[timing]))
        .with_validator(validate_order)
        .add_step("validate", validate)
        .add_parallel_tasks([reserve, charge], name="fulfil")
        .add_conditional_tasks(lambda ctx: ctx.input.get("express", False), [courier], name="express")
        .add_hook(HookType.ON_TASK_FINISH, lambda task, error: print(f"  finished {task.name}"))
        .add_hook(HookType.ON_WORKFLOW_FINISH, lambda ctx, error: print(f"  run {ctx.run_id} done"))
    )
    workflow = manager.build_workflow(builder)

    output = await workflow.execute(
        {"order_id": 1001, "items": ["book", "lamp"], "total": 84, "express": True}
    )

    print("\nOutput:")
    for name, result in output.items():
        print(f"  {name}: {result}")
    print(f"\nCharge attempts: {CHARGE_ATTEMPTS}")
    print(f"Status: {workflow.status}")


if __name__ == "__main__":
    asyncio.run(main())
