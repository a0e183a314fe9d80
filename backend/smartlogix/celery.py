import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "smartlogix.settings")

app = Celery("smartlogix")

# Load settings from Django config, using the CELERY_ prefix
app.config_from_object("django.conf:settings", namespace="CELERY")

# Auto-discover tasks.py in every installed app
app.autodiscover_tasks()

app.conf.task_routes = {
    "imports.run_order_import": {"queue": "imports"},
}
