import os
from celery import Celery

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'loanmanage.settings')

app = Celery('loanmanage')
# Read CELERY_* values from the Django settings
app.config_from_object('django.conf:settings', namespace='CELERY')
app.autodiscover_tasks()
