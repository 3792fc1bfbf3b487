"""Progress notifications for long running jobs."""

from __future__ import annotations

import json
import logging
import time
import uuid
from collections.abc import Callable

from sqlalchemy.orm import Session

from intranet.domain.entities import NotificationType
from intranet.domain.exceptions import PersistenceError
from intranet.infrastructure.notifications import NotificationPublisher

from .create_notification import create_notification

logger = logging.getLogger(__name__)

JOB_PROGRESS_STEPS = (25, 50, 75)


def new_job_id() -> str:
    return str(uuid.uuid4())


def job_metadata(job_id: str) -> str:
    return json.dumps({"job_id": job_id})


def run_job_simulation(
    session_factory: Callable[[], Session],
    *,
    user_id: int,
    job_id: str,
    step_seconds: float = 2.0,
    publisher: NotificationPublisher | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> None:
    """Notify ``user_id`` as a simulated job starts, progresses and completes.

    Every notification carries ``{"job_id": ...}`` metadata so clients can
    group them. A failure part way through is reported as a final error
    notification.
    """

    session = session_factory()
    metadata = job_metadata(job_id)

    def send(title: str, message: str, notification_type: NotificationType) -> None:
        create_notification(
            session,
            user_id=user_id,
            title=title,
            message=message,
            notification_type=notification_type,
            metadata=metadata,
            publisher=publisher,
        )

    try:
        send("Job Started", "Processing your request...", NotificationType.INFO)
        for percent in JOB_PROGRESS_STEPS:
            sleep(step_seconds)
            send("Job Progress", f"{percent}% complete...", NotificationType.INFO)
        sleep(step_seconds)
        send("Job Completed", "Your job has completed successfully!", NotificationType.SUCCESS)
        logger.info("Job %s completed for user %s", job_id, user_id)
    except (PersistenceError, ValueError) as exc:
        logger.error("Job %s failed for user %s: %s", job_id, user_id, exc)
        try:
            send("Job Failed", f"Job failed with error: {exc}", NotificationType.ERROR)
        except PersistenceError:
            logger.warning("Could not report the failure of job %s", job_id)
    finally:
        session.close()
