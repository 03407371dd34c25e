"""Tests for the Prometheus metrics registry."""

from __future__ import annotations

from p2psim.subspecs.metrics import (
    REGISTRY,
    event_handling_errors,
    event_handling_time,
    events_processed,
    generate_metrics,
    messages_delivered,
    messages_sent,
    nodes_spawned,
    virtual_time,
)
from p2psim.subspecs.protocol import PokeNode
from p2psim.subspecs.simulation import Simulation
from p2psim.subspecs.underlay import ForRandomNode, SpawnRandomNodes


def histogram_count() -> float:
    samples = list(event_handling_time.collect())[0].samples
    return next(s.value for s in samples if s.name.endswith("_count"))


class TestMetricTypes:
    """Tests for metric type behavior."""

    def test_counter_increments_correctly(self) -> None:
        """Counter metrics increment by one on each call."""
        initial = nodes_spawned._value.get()
        nodes_spawned.inc()
        assert nodes_spawned._value.get() == initial + 1.0

    def test_gauge_sets_value_correctly(self) -> None:
        """Gauge metrics can be set to arbitrary values."""
        virtual_time.set(4.5)
        assert virtual_time._value.get() == 4.5

    def test_histogram_observes_values(self) -> None:
        """Histogram metrics record observations."""
        initial = histogram_count()
        event_handling_time.observe(0.001)
        assert histogram_count() == initial + 1


class TestKernelInstrumentation:
    """Tests that a running simulation feeds the metrics."""

    def test_draining_counts_events(self) -> None:
        sim = Simulation(seed=0)
        processed = events_processed._value.get()
        timed = histogram_count()
        spawned = nodes_spawned._value.get()

        sim.do_now(SpawnRandomNodes(3))
        sim.work_until(1.0)

        assert events_processed._value.get() == processed + 1
        assert histogram_count() == timed + 1
        assert nodes_spawned._value.get() == spawned + 3

    def test_errors_are_counted(self) -> None:
        sim = Simulation(seed=0)
        errors = event_handling_errors._value.get()

        sim.do_now(ForRandomNode(PokeNode()))
        sim.work_until(0.0)

        assert event_handling_errors._value.get() == errors + 1

    def test_messages_are_counted(self) -> None:
        sim = Simulation(seed=0)
        sim.do_now(SpawnRandomNodes(2))
        sim.work_until(0.0)
        a, b = sim.all_nodes()
        sent, delivered = messages_sent._value.get(), messages_delivered._value.get()

        sim.send_message(a, b, "ping")
        sim.work_until(10.0)

        assert messages_sent._value.get() == sent + 1
        assert messages_delivered._value.get() == delivered + 1


class TestPrometheusOutput:
    """Tests for Prometheus text format output."""

    def test_generate_metrics_returns_bytes(self) -> None:
        assert isinstance(generate_metrics(), bytes)

    def test_output_contains_metric_names(self) -> None:
        output = generate_metrics().decode("utf-8")

        assert "p2psim_events_processed_total" in output
        assert "p2psim_virtual_time_seconds" in output
        assert "p2psim_blocks_mined_total" in output
        assert "p2psim_event_handling_seconds_bucket" in output

    def test_output_contains_help_text(self) -> None:
        output = generate_metrics().decode("utf-8")

        assert "# HELP p2psim_virtual_time_seconds" in output
        assert "# TYPE p2psim_virtual_time_seconds gauge" in output


class TestRegistryIsolation:
    def test_registry_is_dedicated(self) -> None:
        """Our registry is separate from the default prometheus registry."""
        from prometheus_client import REGISTRY as DEFAULT_REGISTRY

        assert REGISTRY is not DEFAULT_REGISTRY
