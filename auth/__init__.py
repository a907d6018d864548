"""auth/ -- Credentials, sessions, and the auth gate for UniDirectory.

Layer rule: auth/ imports only core/, stdlib and third-party libraries.
It does NOT import from api/, web/, or directory/.
api/, web/ and directory/ import from auth/, not the other way around.
"""
