"""
auth/lockout.py -- Login attempt limiting for staff accounts.

State per account:

    ACTIVE(failed_attempts in {0, 1, 2}) --3rd wrong password--> LOCKED

LOCKED is terminal for the login flow. The only way out is the administrative
reset LoginGuard.unlock(); there is no time-based expiry.

attempt_login() outcomes:
  unknown username        -> InvalidCredentials (no counter in the payload)
  account locked          -> AccountLocked, no state change, password not checked
  wrong password, 1st/2nd -> failed_attempts += 1, InvalidCredentials(remaining)
  wrong password, 3rd     -> locked = True, failed_attempts = 0, AccountLocked
  correct password        -> failed_attempts = 0, LoginSuccess(token, account)

The lock is set eagerly on the failure that reaches MAX_LOGIN_ATTEMPTS, so the
response to that very request is already AccountLocked.

Concurrency: reading failed_attempts, computing the new value and writing it
back is a critical section per account. LoginGuard keeps one threading.Lock per
existing account id and holds it for the whole attempt, bcrypt included. The
lock is only created once the username resolves to an account, so unknown
usernames never add entries. unlock() takes the same lock, so an in-flight
failure cannot overwrite an administrative reset. Attempts against
different accounts never wait on each other. Route handlers are sync, so
FastAPI runs them in its worker thread pool and bcrypt stays off the event loop.

Layer rule: no imports from api/ or gym/.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass

from auth.errors import AccountLocked, InvalidCredentials
from auth.models import StaffAccount
from auth.store import StaffStore
from auth.tokens import create_access_token, equalize_timing, verify_password

logger = logging.getLogger("gymdesk.auth")

MAX_LOGIN_ATTEMPTS = 3


@dataclass(frozen=True)
class LoginSuccess:
    token: str
    account: StaffAccount


class LoginGuard:
    """Runs authentication attempts against a StaffStore.

    The store is injected so tests (and a future real database) can supply
    their own. One guard should be shared by every request that can touch the
    same store -- the per-account locks only protect attempts made through the
    same guard instance.
    """

    def __init__(self, store: StaffStore) -> None:
        self._store = store
        self._locks: dict[int, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _account_lock(self, account_id: int) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(account_id)
            if lock is None:
                lock = self._locks[account_id] = threading.Lock()
            return lock

    def forget(self, account_id: int) -> None:
        """Drop the lock kept for a deleted account."""
        with self._locks_guard:
            self._locks.pop(account_id, None)

    def attempt_login(self, username: str, password: str) -> LoginSuccess:
        """Authenticate one login attempt and update the account's attempt state.

        Raises InvalidCredentials or AccountLocked on rejection. All state
        changes are committed to the store before this method returns or raises.
        """
        found = self._store.get_by_username(username)
        if found is None:
            equalize_timing(password)
            logger.info("Login rejected for unknown username")
            raise InvalidCredentials()

        with self._account_lock(found.id):
            # Re-read under the lock: the first read may predate a concurrent attempt.
            account = self._store.get_by_id(found.id)
            if account is None:
                equalize_timing(password)
                logger.info("Login rejected for an account deleted mid-attempt")
                raise InvalidCredentials()

            if account.locked:
                logger.warning("Login rejected for locked account id=%s", account.id)
                raise AccountLocked()

            if not verify_password(password, account.hashed_password):
                failed = account.failed_attempts + 1
                if failed >= MAX_LOGIN_ATTEMPTS:
                    self._store.persist_attempt_state(account.username, 0, True)
                    logger.warning("Account id=%s locked after %d failed login attempts", account.id, failed)
                    raise AccountLocked(just_locked=True)
                self._store.persist_attempt_state(account.username, failed, False)
                logger.warning("Failed login for account id=%s (%d/%d)", account.id, failed, MAX_LOGIN_ATTEMPTS)
                raise InvalidCredentials(remaining_attempts=MAX_LOGIN_ATTEMPTS - failed)

            self._store.persist_attempt_state(account.username, 0, False)
            account.failed_attempts = 0
            token = create_access_token(account.id, account.username, account.role)
            logger.info("Login succeeded for account id=%s", account.id)
            return LoginSuccess(token=token, account=account)

    def unlock(self, account_id: int) -> bool:
        """Administrative reset, serialized with login attempts on the same account.

        Returns False if account_id does not exist.
        """
        if self._store.get_by_id(account_id) is None:
            return False
        with self._account_lock(account_id):
            return self._store.unlock(account_id)
