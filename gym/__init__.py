"""gym/ -- Students, plans and check-ins for GymDesk.

Layer rule: gym/ imports only stdlib + third-party libraries. It does NOT
import from api/ or auth/. Staff accounts live in auth/ because the lockout
state machine owns part of their state.
"""
