"""Celery entrypoint: ``celery -A mission_photos.worker_entry worker``."""

from mission_photos.worker import create_worker_app

celery_app = create_worker_app()
