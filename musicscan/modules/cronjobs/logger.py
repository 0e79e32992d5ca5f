from supabase import Client
from musicscan.core.utils import utcnow, utcnow_iso
from typing import Any, Dict, Optional
import time
import logging

logger = logging.getLogger(__name__)


class CronjobLogger:
    """
    Records one run of a scheduled function in cronjob_execution_log.

        with CronjobLogger(supabase, "indexnow-processor") as run:
            result = service.process_queue()
            run.items_processed = result.processed

    The row is inserted as 'running' on enter and closed as 'completed' or
    'failed' on exit. Exceptions are recorded and re-raised. Failures to write
    the log itself never break the job.
    """

    def __init__(self, supabase: Client, function_name: str):
        self.supabase = supabase
        self.function_name = function_name
        self.log_id: Optional[str] = None
        self.items_processed = 0
        self.metadata: Dict[str, Any] = {}
        self._started = 0.0

    def __enter__(self) -> "CronjobLogger":
        self._started = time.monotonic()
        try:
            result = self.supabase.table("cronjob_execution_log").insert({
                "function_name": self.function_name,
                "status": "running",
                "started_at": utcnow_iso(),
            }).execute()
            if result.data:
                self.log_id = result.data[0].get("id")
        except Exception as e:
            logger.warning(f"Could not open cronjob log for {self.function_name}: {e}")
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        elapsed_ms = int((time.monotonic() - self._started) * 1000)
        status = "failed" if exc is not None else "completed"
        update = {
            "status": status,
            "completed_at": utcnow().isoformat(),
            "execution_time_ms": elapsed_ms,
            "items_processed": self.items_processed,
            "metadata": self.metadata,
            "error_message": str(getattr(exc, "detail", None) or exc) if exc is not None else None,
        }
        if exc is not None:
            logger.error(f"Cronjob {self.function_name} failed after {elapsed_ms}ms: {exc}")
        else:
            logger.info(f"Cronjob {self.function_name} completed in {elapsed_ms}ms ({self.items_processed} items)")
        if self.log_id:
            try:
                self.supabase.table("cronjob_execution_log").update(update).eq("id", self.log_id).execute()
            except Exception as e:
                logger.warning(f"Could not close cronjob log for {self.function_name}: {e}")
        return False
