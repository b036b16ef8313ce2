"""Gunicorn configuration for the Keycloak admin gateway.

Run with:
    gunicorn -c gunicorn.conf.py "admin_gateway.flask_app:create_app()"

Each worker builds its own app (and therefore its own authenticated
Keycloak client), so nothing is preloaded in the master.
"""
import os

bind = os.environ.get("GUNICORN_BIND", "0.0.0.0:8000")
workers = int(os.environ.get("GUNICORN_WORKERS", "2"))
threads = int(os.environ.get("GUNICORN_THREADS", "4"))
timeout = int(os.environ.get("GUNICORN_TIMEOUT", "60"))
loglevel = os.environ.get("LOG_LEVEL", "info").lower()
accesslog = "-"
preload_app = False


def post_fork(server, worker):
    """
    Called just after a worker has been forked.

    Reports where Keycloak credentials will come from so a misconfigured
    deployment is visible in the worker log before the first request.
    """
    from pathlib import Path

    secrets_dir = Path("/run/secrets")
    if secrets_dir.exists() and secrets_dir.is_dir():
        secret_files = list(secrets_dir.glob("*"))
        if secret_files:
            worker.log.info(f"Found {len(secret_files)} secrets in /run/secrets")
            return

    demo_mode = os.environ.get("DEMO_MODE", "false").lower() == "true"
    if demo_mode:
        worker.log.warning("DEMO_MODE=true: demo Keycloak credentials will be used")
        return

    if not os.environ.get("KEYCLOAK_PASSWORD"):
        worker.log.error("KEYCLOAK_PASSWORD not set and no /run/secrets mount found")
