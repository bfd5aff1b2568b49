# guraneza/celery.py
import os
from celery import Celery

# Set default Django settings module
os.environ.setdefault('DJANGO_SETTINGS_MODULE',
                      'guraneza.settings.development')

# Create Celery application
app = Celery('guraneza')

# Load configuration from Django settings with CELERY namespace
app.config_from_object('django.conf:settings', namespace='CELERY')

# ============================================================================
# BROKER CONNECTION SETTINGS
# ============================================================================
app.conf.broker_connection_retry = True
app.conf.broker_connection_retry_on_startup = True

# ============================================================================
# TASK CONFIGURATION
# ============================================================================
app.conf.task_serializer = 'json'
app.conf.result_serializer = 'json'
app.conf.accept_content = ['json']
app.conf.timezone = 'UTC'
app.conf.enable_utc = True

# Task result backend settings
app.conf.result_expires = 3600  # Results expire after 1 hour

# Task execution settings
app.conf.task_track_started = True
app.conf.task_time_limit = 10 * 60
app.conf.task_soft_time_limit = 8 * 60

# Periodic tasks live in settings.CELERY_BEAT_SCHEDULE
app.autodiscover_tasks()
