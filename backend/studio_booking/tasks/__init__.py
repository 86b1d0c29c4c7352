"""Celery application and tasks for the studio booking engine."""
