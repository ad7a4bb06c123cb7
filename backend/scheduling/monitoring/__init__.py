"""Prometheus instrumentation for the scheduling engine and its HTTP adapter."""

from .prometheus_metrics import REGISTRY, PrometheusMetrics, prometheus_metrics

__all__ = ["REGISTRY", "PrometheusMetrics", "prometheus_metrics"]
