# lambda_handler.py
# Serverless handlers for the badge lookup API

from mangum import Mangum
from urllib.parse import unquote
import json
import logging

from badge_lookup import configure_logging
from badge_lookup.api import app
from badge_lookup.config import BadgeConfig
from badge_lookup.errors import BadgeLookupError, UpstreamError
from badge_lookup.service import build_service

configure_logging()
logger = logging.getLogger("lambda_handler")

# Wrap the FastAPI app with Mangum for Lambda compatibility
api_handler = Mangum(app, lifespan="off")

HEADERS = {
    "Content-Type": "application/json",
    "Access-Control-Allow-Origin": "*"
}

def json_response(status_code, body):
    return {
        "statusCode": status_code,
        "headers": dict(HEADERS),
        "body": json.dumps(body),
    }

def user_id_from_event(event):
    """
    Pull the userId out of the invocation path.

    Accepts /api/badges/<id>, /.netlify/functions/badges/<id> and API
    Gateway pathParameters; the id is URL-decoded.
    """
    params = event.get("pathParameters") or {}
    if params.get("userId"):
        return unquote(params["userId"])

    path = event.get("path") or event.get("rawPath") or ""
    segments = [s for s in path.split("/") if s]
    if "badges" in segments:
        idx = len(segments) - 1 - segments[::-1].index("badges")
        segments = segments[idx + 1:]
    return unquote(segments[-1]) if segments else ""

# Lambda handlers
def badges(event, context):
    """
    Lambda handler for GET /api/badges/{userId}?sessionId=
    Reads configuration on every invocation
    """
    try:
        service = build_service(BadgeConfig.from_env())
        query = event.get("queryStringParameters") or {}
        result = service.lookup(user_id_from_event(event), query.get("sessionId"))
        return json_response(200, result.model_dump())
    except UpstreamError as e:
        logger.error("Failed to fetch badges: %s", e.message, exc_info=e.cause or e)
        return json_response(e.status_code, e.to_dict())
    except BadgeLookupError as e:
        return json_response(e.status_code, e.to_dict())
    except Exception as e:
        logger.exception("Unexpected error in badges handler")
        return json_response(500, {
            "error": "Failed to fetch badges",
            "details": str(e)
        })

def api(event, context):
    """
    Lambda handler for the whole HTTP surface
    Handles /api/badges/*, /api/health and static routes
    """
    try:
        return api_handler(event, context)
    except Exception as e:
        logger.exception("Unhandled error in api handler")
        return json_response(500, {
            "error": "Internal error",
            "details": str(e)
        })

# Health check handler
def health_check(event, context):
    """
    Simple health check endpoint
    """
    config = BadgeConfig.from_env()
    return json_response(200, {
        "ok": True,
        "hasAirtable": config.has_airtable
    })
