# backend/celeryconfig.py

import os
from kombu import Queue, Exchange

# redis runs in another docker container;
# outside docker use "redis://localhost:6379/0"

BROKER_URL = os.getenv("CELERY_BROKER_URL", os.getenv("REDIS_URL", "redis://host.docker.internal:6379/0"))
RESULT_BACKEND = os.getenv("CELERY_RESULT_BACKEND", BROKER_URL)

broker_url = BROKER_URL
result_backend = RESULT_BACKEND

task_serializer = "json"
result_serializer = "json"
accept_content = ["json"]
timezone = "UTC"
enable_utc = True

# PROGRESS state is reported by the pipeline; keep STARTED visible too
task_track_started = True
result_extended = True
# finished pipelines are looked up by the UI for a while, not forever
result_expires = int(os.getenv("CELERY_RESULT_EXPIRES", "86400"))

# Single-process development: run tasks inline (use with KV_BACKEND=memory).
# Progress and results then live in an in-process cache instead of Redis.
task_always_eager = os.getenv("CELERY_TASK_ALWAYS_EAGER", "false").lower() == "true"
task_eager_propagates = True
if task_always_eager:
    result_backend = os.getenv("CELERY_RESULT_BACKEND", "cache+memory://")
    task_store_eager_result = True

# -------- Queues & Routing --------

default_exchange = Exchange("default", type="direct")
llm_exchange = Exchange("llm", type="direct")

task_queues = (
    Queue("default", exchange=default_exchange, routing_key="default"),
    # review pipeline + warmup: both end in a model call
    Queue("llm", exchange=llm_exchange, routing_key="llm"),
)

task_default_queue = "default"
task_default_exchange = "default"
task_default_routing_key = "default"

task_routes = {
    "run_upload_job": {"queue": "llm", "routing_key": "llm"},
    "warmup_llm": {"queue": "llm", "routing_key": "llm"},
}
