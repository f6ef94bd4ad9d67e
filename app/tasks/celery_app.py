from urllib.parse import urlparse, urlunparse, parse_qsl, urlencode

from celery import Celery
from app.core.config import settings


def broker_url(url: str) -> str:
    """rediss:// brokers need an explicit ssl_cert_reqs query parameter for Celery."""
    parsed = urlparse(url or "")
    if parsed.scheme != "rediss":
        return url
    query = dict(parse_qsl(parsed.query))
    query.setdefault("ssl_cert_reqs", "CERT_NONE")
    return urlunparse(parsed._replace(query=urlencode(query)))


celery = Celery(
    "stepperslife",
    broker=broker_url(settings.REDIS_URL),
    backend=broker_url(settings.REDIS_URL),
    include=["app.tasks.jobs"],
)

celery.conf.update(
    timezone="America/Chicago",
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    beat_schedule={
        "expire-cash-holds": {
            "task": "app.tasks.jobs.expire_cash_holds",
            "schedule": settings.EXPIRE_SWEEP_SECONDS,
        },
        "retry-staff-emails": {
            "task": "app.tasks.jobs.process_email_queue",
            "schedule": 120.0,
            "kwargs": {"limit": 50},
        },
    },
)
