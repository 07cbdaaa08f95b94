from celery import Celery

from fourkeys.core.config import get_settings

settings = get_settings()

celery = Celery(
    "fourkeys",
    broker=settings.redis_url,
    backend=settings.redis_url,
)

# Import tasks
celery.conf.imports = ["fourkeys.tasks"]

# Deliveries are routed per source at publish time; this is the fallback.
celery.conf.task_default_queue = "github"
