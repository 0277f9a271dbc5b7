from happiness_meter.monitoring.alerts import AlertService

__all__ = ["AlertService"]
