"""Tests for per-operation discovery metrics."""

import logging

from discovery.metrics import DiscoveryMetrics, DiscoveryMetricsCollector


class TestDiscoveryMetrics:

    def test_success_rate(self):
        metrics = DiscoveryMetrics(provider_calls=4, provider_succeeded=3)
        assert metrics.success_rate() == 0.75
        assert DiscoveryMetrics().success_rate() == 0.0

    def test_has_results(self):
        assert DiscoveryMetrics(result_count=1).has_results()
        assert not DiscoveryMetrics().has_results()


class TestCollector:

    def test_records_within_tracking(self):
        collector = DiscoveryMetricsCollector()

        with collector.track_discovery("category", "Food & Meals") as metrics:
            collector.record_provider("scripted", "food bank", "ok", 3, 12.5)
            collector.record_provider("scripted", "food bank OR food pantry", "timeout", 0, 8000, "Search timed out")
            collector.record_broadening()
            collector.record_results(3)

        assert metrics.provider_calls == 2
        assert metrics.provider_succeeded == 1
        assert metrics.provider_failed == 1
        assert metrics.broadening_passes == 1
        assert metrics.result_count == 3
        assert metrics.calls[1].error_message == "Search timed out"
        assert metrics.total_latency_ms >= 0
        assert collector.current is None

    def test_records_outside_tracking_are_ignored(self):
        collector = DiscoveryMetricsCollector()
        collector.record_provider("scripted", "food bank", "ok", 3, 12.5)
        collector.record_cache_hit()
        assert collector.current is None

    def test_cache_hit_logged_as_success(self, caplog):
        collector = DiscoveryMetricsCollector()

        with caplog.at_level(logging.INFO, logger="discovery.metrics"):
            with collector.track_discovery("category", "Food & Meals"):
                collector.record_cache_hit()
                collector.record_results(4)

        record = caplog.records[-1]
        assert record.getMessage() == "Discovery completed successfully"
        assert record.cache_hits == 1
        assert record.event == "discovery_complete"

    def test_all_failures_logged_as_error(self, caplog):
        collector = DiscoveryMetricsCollector()

        with caplog.at_level(logging.INFO, logger="discovery.metrics"):
            with collector.track_discovery("search", "soup kitchen"):
                collector.record_provider("scripted", "q1", "error", 0, 5)
                collector.record_provider("scripted", "q2", "rate_limited", 0, 5)

        record = caplog.records[-1]
        assert record.levelno == logging.ERROR
        assert record.providers["failed"] == 2

    def test_empty_results_logged_as_warning(self, caplog):
        collector = DiscoveryMetricsCollector()

        with caplog.at_level(logging.INFO, logger="discovery.metrics"):
            with collector.track_discovery("category", "Veterans Services"):
                collector.record_provider("scripted", "veterans services", "ok", 0, 5)

        record = caplog.records[-1]
        assert record.levelno == logging.WARNING
        assert record.getMessage() == "Discovery completed but no results"
