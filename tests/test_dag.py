"""Tests for the DAG runner – runs without any external dependencies."""

import pytest

from clinic_safety.etl.dag import DAG, TaskStatus


def test_linear_dag_executes_in_order():
    """Tasks run in dependency order and context flows downstream."""
    execution_log = []

    def step_a(ctx):
        execution_log.append("a")
        return {"from_a": 1}

    def step_b(ctx):
        execution_log.append("b")
        assert ctx["from_a"] == 1
        return {"from_b": 2}

    def step_c(ctx):
        execution_log.append("c")
        assert ctx["from_b"] == 2

    dag = DAG("test_linear")
    dag.add_task("a", step_a)
    dag.add_task("b", step_b, depends_on=["a"])
    dag.add_task("c", step_c, depends_on=["b"])

    run = dag.run()
    assert run.succeeded
    assert execution_log == ["a", "b", "c"]
    assert run.context["from_b"] == 2


def test_failure_skips_everything_downstream():
    """A failure stops the whole chain below it, not just direct dependents."""

    def failing_task(ctx):
        raise RuntimeError("Intentional failure")

    def downstream(ctx):
        pytest.fail("Should not have run")

    dag = DAG("test_failure")
    dag.add_task("fail", failing_task)
    dag.add_task("after", downstream, depends_on=["fail"])
    dag.add_task("after_after", downstream, depends_on=["after"])

    run = dag.run()
    assert run.status == "failed"
    assert run.failed_tasks() == ["fail"]
    assert run.tasks["fail"]["error"] == "RuntimeError: Intentional failure"
    assert dag.tasks["after"].status == TaskStatus.SKIPPED
    assert dag.tasks["after_after"].status == TaskStatus.SKIPPED


def test_independent_branch_still_runs():
    dag = DAG("branches")
    dag.add_task("bad", lambda ctx: 1 / 0)
    dag.add_task("good", lambda ctx: {"ok": True})

    run = dag.run()
    assert run.status == "failed"
    assert dag.tasks["good"].status == TaskStatus.SUCCESS
    assert run.context["ok"] is True


def test_cycle_detection():
    """DAG rejects circular dependencies."""
    dag = DAG("test_cycle")
    dag.add_task("a", lambda ctx: None, depends_on=["b"])
    dag.add_task("b", lambda ctx: None, depends_on=["a"])

    with pytest.raises(ValueError, match="Cycle detected"):
        dag.run()


def test_unknown_dependency_and_duplicates_rejected():
    dag = DAG("bad")
    dag.add_task("a", lambda ctx: None, depends_on=["missing"])
    with pytest.raises(ValueError, match="unknown task"):
        dag.run()
    with pytest.raises(ValueError, match="Duplicate"):
        dag.add_task("a", lambda ctx: None)


def test_diamond_dag():
    """Diamond shape: A -> B, A -> C, B+C -> D."""
    dag = DAG("diamond")
    dag.add_task("a", lambda ctx: {"val": 1})
    dag.add_task("b", lambda ctx: {"b_val": ctx["val"] + 10}, depends_on=["a"])
    dag.add_task("c", lambda ctx: {"c_val": ctx["val"] + 20}, depends_on=["a"])
    dag.add_task("d", lambda ctx: {"total": ctx["b_val"] + ctx["c_val"]}, depends_on=["b", "c"])

    run = dag.run()
    assert run.succeeded
    assert dag.tasks["d"].result["total"] == 32  # 11 + 21
    assert dag.execution_order() == ["a", "b", "c", "d"]


def test_rerun_resets_state():
    calls = []
    dag = DAG("rerun")
    dag.add_task("a", lambda ctx: calls.append(ctx.get("n")))

    dag.run({"n": 1})
    run = dag.run({"n": 2})
    assert calls == [1, 2]
    assert run.summary()["tasks"]["a"]["status"] == "success"


def test_to_dict_serialization():
    dag = DAG("serialize_test")
    dag.add_task("x", lambda ctx: None)
    dag.add_task("y", lambda ctx: None, depends_on=["x"])

    d = dag.to_dict()
    assert d["name"] == "serialize_test"
    assert d["tasks"]["y"]["depends_on"] == ["x"]
