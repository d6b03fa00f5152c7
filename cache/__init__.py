"""cache/ -- Single-slot TTL cache behind GET /data.

Layer rule: cache/ imports only stdlib + core/. It does NOT import from
api/, web/, or auth/.
"""
