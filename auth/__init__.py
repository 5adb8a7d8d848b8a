"""auth/ -- Authentication and authorization package for Chirpy.

Layer rule: auth/ imports only core/ + stdlib + third-party libraries.
It does NOT import from api/, web/, or chirps/.
api/ and web/ import from auth/, not the other way around.
"""
