"""
CORS configuration for the ration audit API.

Browser clients post rations and read the plain-text report, so only GET,
POST and preflight requests are allowed, and the audit id and timing
headers are exposed to scripts.
"""
from fastapi.middleware.cors import CORSMiddleware
from fastapi import FastAPI
import os

from middleware.middleware import AUDIT_ID_HEADER, PROCESS_TIME_HEADER

DEV_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:5173",
    "http://127.0.0.1:3000",
    "http://127.0.0.1:5173",
]


def cors_origins(environ=None):
    """
    Allowed origins from CORS_ORIGINS (comma separated).

    Local dev servers are added when ENVIRONMENT is "development". An empty
    list means same-origin only.
    """
    environ = os.environ if environ is None else environ
    origins = [
        origin.strip()
        for origin in environ.get("CORS_ORIGINS", "").split(",")
        if origin.strip()
    ]
    if environ.get("ENVIRONMENT", "production") == "development":
        origins.extend(o for o in DEV_ORIGINS if o not in origins)
    return origins


def setup_cors(app: FastAPI, environ=None):
    """
    Configure CORS middleware for the ration audit API

    Args:
        app: FastAPI application instance
        environ: mapping read instead of os.environ (tests)
    """
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins(environ),
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "X-Requested-With"],
        expose_headers=[AUDIT_ID_HEADER, PROCESS_TIME_HEADER],
        max_age=3600,
    )
