"""auth/ -- Authentication and authorization package for GymDesk.

Layer rule: auth/ imports only stdlib + third-party libraries, plus core/ for
settings. It does NOT import from api/ or gym/.
api/ imports from auth/, not the other way around.
"""
