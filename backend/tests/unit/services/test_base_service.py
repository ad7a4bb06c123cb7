import pytest

from scheduling.monitoring.prometheus_metrics import REGISTRY
from scheduling.services.base import BaseService


class DummyService(BaseService):
    @BaseService.measure_operation("succeed")
    def succeed(self, value):
        return value * 2

    @BaseService.measure_operation("fail")
    def fail(self):
        raise ValueError("boom")


@pytest.fixture
def service():
    service = DummyService()
    service.reset_metrics()
    return service


def test_measure_operation_counts_success(service):
    assert service.succeed(21) == 42
    assert service.succeed(1) == 2

    metrics = service.get_metrics()["succeed"]
    assert metrics["count"] == 2
    assert metrics["success_count"] == 2
    assert metrics["success_rate"] == 1.0
    assert metrics["min_time"] <= metrics["max_time"]


def test_measure_operation_records_failure_and_reraises(service):
    before = REGISTRY.get_sample_value(
        "scheduling_errors_total",
        {"service": "DummyService", "operation": "fail", "error_type": "ValueError"},
    ) or 0.0

    with pytest.raises(ValueError):
        service.fail()

    metrics = service.get_metrics()["fail"]
    assert metrics["failure_count"] == 1
    assert metrics["success_rate"] == 0.0
    after = REGISTRY.get_sample_value(
        "scheduling_errors_total",
        {"service": "DummyService", "operation": "fail", "error_type": "ValueError"},
    )
    assert after == before + 1


def test_measured_methods_are_tagged():
    assert DummyService.succeed._is_measured is True
    assert DummyService.succeed._operation_name == "succeed"


def test_reset_metrics(service):
    service.succeed(1)
    service.reset_metrics()
    assert service.get_metrics() == {}
