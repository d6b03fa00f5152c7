"""auth/ -- Credential, password and session lifecycle for gatekeep.

Layer rule: auth/ imports only stdlib + third-party libraries and core/.
It does NOT import from api/, web/, or cache/.
api/ and web/ import from auth/, not the other way around.
"""
