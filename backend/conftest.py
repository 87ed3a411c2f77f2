import pytest


@pytest.fixture(autouse=True)
def celery_eager():
    """Runs Celery tasks inline so tests never need a broker"""
    from config.celery import celery_app

    previous = celery_app.conf.task_always_eager
    celery_app.conf.task_always_eager = True
    yield celery_app
    celery_app.conf.task_always_eager = previous
