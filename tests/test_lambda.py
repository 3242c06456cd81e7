from types import SimpleNamespace
from unittest.mock import MagicMock

from mangum import Mangum

import lambda_function


def test_handler_wraps_app():
    assert isinstance(lambda_function.handler, Mangum)


def test_lambda_handler_forwards_event(monkeypatch):
    forwarded = MagicMock(return_value={"statusCode": 200})
    monkeypatch.setattr(lambda_function, "handler", forwarded)
    event = {"httpMethod": "GET", "path": "/api/health", "requestContext": {}}
    context = SimpleNamespace(aws_request_id="req-1")

    response = lambda_function.lambda_handler(event, context)

    assert response == {"statusCode": 200}
    forwarded.assert_called_once_with(event, context)


def test_lambda_handler_reads_http_api_events(monkeypatch, caplog):
    monkeypatch.setattr(lambda_function, "handler", MagicMock(return_value={}))
    event = {"rawPath": "/api/products", "requestContext": {"http": {"method": "GET"}}}

    with caplog.at_level("INFO", logger="lambda_function"):
        lambda_function.lambda_handler(event, None)

    assert "GET /api/products" in caplog.text
