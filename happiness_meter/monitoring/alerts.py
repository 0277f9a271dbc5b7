from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any

import structlog

from happiness_meter.config.settings import AlertConfig

if TYPE_CHECKING:
    from happiness_meter.scoring.schemas import Scorecard

logger = structlog.get_logger(__name__)

SEVERITY_ORDER = {"critical": 0, "warning": 1, "info": 2}


class AlertService:
    def __init__(self, config: AlertConfig | None = None) -> None:
        self.config = config or AlertConfig()

    def generate_alerts(self, scorecard: Scorecard) -> list[dict[str, Any]]:
        alerts: list[dict[str, Any]] = []

        if scorecard.entity_score < self.config.entity_score_threshold:
            alerts.append(
                self._alert(
                    "critical",
                    "entity_score",
                    "Overall entity score below threshold",
                    scorecard.entity_score,
                )
            )

        underperforming = [
            s
            for s in scorecard.worst_services
            if s.overall_score < self.config.critical_service_threshold
        ]
        if underperforming:
            alert = self._alert(
                "warning",
                "service_underperformance",
                f"{len(underperforming)} services critically underperforming",
                min(s.overall_score for s in underperforming),
            )
            alert["service_ids"] = [s.id for s in underperforming]
            alerts.append(alert)

        channels = scorecard.channel_breakdown
        if (
            channels.is_present("service_center")
            and channels.service_center < self.config.service_center_threshold
        ):
            alerts.append(
                self._alert(
                    "info",
                    "service_center_performance",
                    "Service centers performance below average",
                    channels.service_center,
                )
            )

        logger.info(
            "alerts_generated",
            total=len(alerts),
            critical=sum(1 for a in alerts if a["severity"] == "critical"),
        )
        return alerts

    def prioritize_alerts(
        self,
        alerts: list[dict[str, Any]],
        max_alerts: int = 10,
    ) -> list[dict[str, Any]]:
        sorted_alerts = sorted(alerts, key=lambda a: (SEVERITY_ORDER[a["severity"]], a["score"]))
        return sorted_alerts[:max_alerts]

    def _alert(self, severity: str, alert_type: str, message: str, score: float) -> dict[str, Any]:
        return {
            "severity": severity,
            "alert_type": alert_type,
            "message": message,
            "score": score,
            "created_at": datetime.now().isoformat(),
        }
