from __future__ import annotations
from typing import Any
from contractintel.utils.logger import logger


class PipelineObserver:
    """Receives pipeline progress; the base class ignores everything."""

    def stage(self, contract_id: str, stage: str, **details: Any) -> None:
        pass

    def failed(self, contract_id: str, stage: str, error: BaseException) -> None:
        pass


class LoggingObserver(PipelineObserver):
    def stage(self, contract_id: str, stage: str, **details: Any) -> None:
        extra = " ".join(f"{k}={v}" for k, v in details.items())
        logger.info("contract=%s stage=%s %s", contract_id, stage, extra)

    def failed(self, contract_id: str, stage: str, error: BaseException) -> None:
        if getattr(error, "client_correctable", False):
            logger.warning("contract=%s stage=%s failed: %s", contract_id, stage, error)
        else:
            logger.error("contract=%s stage=%s failed: %s", contract_id, stage, error, exc_info=error)
