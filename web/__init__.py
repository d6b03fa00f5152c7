"""web/ -- Server-rendered HTML pages (Jinja2).

Layer rule: web/ may import from auth/ and core/. It does NOT import from
api/ -- asgi.py joins the two.
"""
