"""
Configuração do Celery para processamento assíncrono
"""

from celery import Celery

from core.config import settings

celery_app = Celery(
    "broadcast_workers",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_acks_late=True,  # confirma após processar
    worker_prefetch_multiplier=10,
    task_track_started=True,
    task_time_limit=300,  # timeout de 5 minutos
    task_soft_time_limit=240,  # aviso aos 4 minutos
)

# Configurar rotas de tarefas para queues específicas
celery_app.conf.task_routes = {
    "workers.broadcast_tasks.process_inbound_message": {"queue": "celery"},
    "workers.broadcast_tasks.create_campaign_task": {"queue": "broadcast"},
    "workers.broadcast_tasks.reprocess_campaign_task": {"queue": "broadcast"},
}

# Importar tasks explicitamente
from workers import broadcast_tasks  # noqa: F401, E402
