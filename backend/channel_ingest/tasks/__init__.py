"""Celery application, queue facade and tasks."""
