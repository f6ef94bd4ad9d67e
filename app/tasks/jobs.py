from app.tasks.celery_app import celery
from app.tasks import worker_jobs

@celery.task(name="app.tasks.jobs.expire_cash_holds")
def expire_cash_holds():
    return worker_jobs.expire_cash_holds()


@celery.task(name="app.tasks.jobs.notify_new_cash_order", ignore_result=True)
def notify_new_cash_order(order_id: str, event_id: str, buyer_name: str, total_cents: int):
    return worker_jobs.notify_new_cash_order(order_id, event_id, buyer_name, total_cents)


@celery.task(name="app.tasks.jobs.process_email_queue")
def process_email_queue(limit: int = 50):
    return worker_jobs.process_email_queue(limit=limit)
