"""
AWS Lambda entry point (API Gateway REST). The live dashboard websocket is
only available when the app runs under uvicorn.
"""
from mangum import Mangum
from main import app
import logging

logger = logging.getLogger(__name__)

handler = Mangum(app, lifespan="off")


def lambda_handler(event, context):
    request_context = event.get("requestContext") or {}
    logger.info(
        f"Lambda request {getattr(context, 'aws_request_id', '-')}: "
        f"{event.get('httpMethod') or request_context.get('http', {}).get('method')} "
        f"{event.get('path') or event.get('rawPath')}"
    )
    return handler(event, context)
