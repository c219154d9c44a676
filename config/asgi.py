"""
ASGI config for Gatehouse.

Serves traditional ASGI servers (Uvicorn, Daphne) and AWS Lambda through
Mangum (install the `lambda` extra).
"""
import os

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings')

from django.core.asgi import get_asgi_application

# Initialized at import so Lambda pays the cost once per container
application = get_asgi_application()

_lambda_handler = None


def lambda_handler(event, context):
    """AWS Lambda entry point for API Gateway HTTP events."""
    global _lambda_handler
    if _lambda_handler is None:
        from mangum import Mangum
        _lambda_handler = Mangum(application, lifespan="off")
    return _lambda_handler(event, context)
