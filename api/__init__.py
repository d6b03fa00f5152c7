"""api/ -- JSON HTTP surface for gatekeep (FastAPI app and routers).

Layer rule: api/ may import from auth/, cache/ and core/. It does NOT import
from web/ -- asgi.py joins the two.
"""
