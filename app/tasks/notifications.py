import logging
from celery_app import celery_app

logger = logging.getLogger(__name__)


@celery_app.task(bind=True, max_retries=3, default_retry_delay=60)
def send_email_task(self, to: str, subject: str, body: str) -> None:
    """Log the message; mail transport lives outside this service."""
    logger.info("[email disabled] to %s: %s | %s", to, subject, body)


def enqueue_email(to, subject: str, body: str) -> bool:
    """
    Queue an email after the triggering transaction has committed.
    A broker outage is logged and never fails the caller.
    """
    if not to:
        return False
    try:
        send_email_task.delay(to, subject, body)
        return True
    except Exception as e:
        logger.warning("Could not queue email to %s: %s", to, e)
        return False
