from __future__ import annotations

import json
import logging
from typing import Any, Optional


class EventBus:
    def __init__(
        self,
        *,
        structured_logs: bool,
        explain_decisions: bool,
        logger: Optional[Any] = None,
    ) -> None:
        self.structured_logs = structured_logs
        self.explain_decisions = explain_decisions
        self.logger = logger if logger is not None else logging.getLogger('queue_striker.events')

    def log(self, event: str, **fields) -> None:
        payload = {"event": event, **fields}
        try:
            if self.structured_logs:
                self.logger.info(json.dumps(payload, ensure_ascii=False))
            else:
                self.logger.info(f"{event}: {fields}")
        except (TypeError, ValueError):
            self.logger.info(str(payload))

    def decision(self, event: str, **fields) -> None:
        # Per-item decisions are only logged in explain mode
        if self.explain_decisions:
            self.log(event, **fields)
