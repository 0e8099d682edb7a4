"""
Tests for ParallelFlow (fan-out / aggregate)
"""
import pytest

from agent_pattern.exceptions import ConfigurationError, PreconditionError
from agent_pattern.flow import ParallelFlow
from agent_pattern.flow.parallel_flow import AGGREGATION_HEADER
from agent_pattern.schema import ExecutionState

from fakes import FakeAgent


@pytest.fixture
def aggregator():
    return FakeAgent(name="aggregator", transform=lambda s: "SUMMARY")


@pytest.fixture
def workers():
    # slowest first so completion order is the reverse of prompt order
    return [
        FakeAgent(name="w1", reply="r1", delay=0.03),
        FakeAgent(name="w2", reply="r2", delay=0.02),
        FakeAgent(name="w3", reply="r3", delay=0.01),
    ]


class TestConstruction:

    def test_no_workers_rejected(self, aggregator):
        with pytest.raises(ConfigurationError):
            ParallelFlow(agents=[], aggregator=aggregator)

    def test_missing_aggregator_rejected(self, workers):
        with pytest.raises(ConfigurationError):
            ParallelFlow(agents=workers)


class TestAggregationPrompt:

    def test_format(self, workers, aggregator):
        flow = ParallelFlow(agents=workers[:2], aggregator=aggregator)
        prompt = flow.build_aggregation_prompt(["first", "second"])
        assert prompt == (
            AGGREGATION_HEADER
            + "\nResult 1:\nfirst\n"
            + "\nResult 2:\nsecond\n"
        )


class TestRun:

    @pytest.mark.asyncio
    async def test_results_in_prompt_order(self, workers, aggregator):
        flow = ParallelFlow(agents=workers, aggregator=aggregator)

        assert await flow.run(["p1", "p2", "p3"]) == "SUMMARY"
        assert [w.calls for w in workers] == [["p1"], ["p2"], ["p3"]]

        assert len(aggregator.calls) == 1
        prompt = aggregator.calls[0]
        positions = [prompt.index(f"Result {i}:\nr{i}") for i in (1, 2, 3)]
        assert positions == sorted(positions)
        assert flow.state == ExecutionState.COMPLETED

    @pytest.mark.asyncio
    async def test_prompt_count_mismatch(self, workers, aggregator):
        flow = ParallelFlow(agents=workers, aggregator=aggregator)

        with pytest.raises(PreconditionError) as exc_info:
            await flow.run(["p1", "p2"])
        assert "2" in str(exc_info.value) and "3" in str(exc_info.value)
        assert all(w.calls == [] for w in workers)
        assert aggregator.calls == []
        assert flow.state == ExecutionState.CREATED

    @pytest.mark.asyncio
    async def test_worker_failure_skips_aggregator(self, aggregator):
        workers = [
            FakeAgent(name="ok", reply="fine"),
            FakeAgent(name="bad", error=RuntimeError("worker crashed")),
        ]
        flow = ParallelFlow(agents=workers, aggregator=aggregator)

        with pytest.raises(RuntimeError, match="worker crashed"):
            await flow.run(["a", "b"])
        assert aggregator.calls == []
        assert flow.state == ExecutionState.FAILED

    @pytest.mark.asyncio
    async def test_worker_failure_cancels_slow_workers(self, aggregator):
        slow = FakeAgent(name="slow", reply="late", delay=5)
        bad = FakeAgent(name="bad", error=RuntimeError("worker crashed"))
        flow = ParallelFlow(agents=[slow, bad], aggregator=aggregator)

        with pytest.raises(RuntimeError):
            await flow.run(["a", "b"])
        assert slow.calls == ["a"]
        assert slow.finished == []

    @pytest.mark.asyncio
    async def test_aggregator_failure_propagates(self, workers):
        broken = FakeAgent(name="aggregator", error=RuntimeError("cannot combine"))
        flow = ParallelFlow(agents=workers, aggregator=broken)

        with pytest.raises(RuntimeError, match="cannot combine"):
            await flow.run(["p1", "p2", "p3"])
        assert flow.state == ExecutionState.FAILED
