from hostellink.tasks.celery_app import celery
from hostellink.tasks import worker_jobs


@celery.task(name="hostellink.tasks.jobs.process_email_queue")
def process_email_queue(limit: int = 50):
    return worker_jobs.process_email_queue(limit=limit)


@celery.task(name="hostellink.tasks.jobs.reconcile_wallets")
def reconcile_wallets():
    return worker_jobs.reconcile_wallets()
