"""
tests/test_api_auth.py -- Integration tests for login, bearer auth and the permission gate.

These tests go through the full stack: FastAPI routing -> LoginGuard ->
StaffStore -> exception handlers, so status codes and JSON bodies are checked
exactly as a client sees them.

Coverage:
  - POST /api/auth/login: 200, 401 with tentativasRestantes 2/1, 403 on the
    third failure and afterwards, counter-free 401 for unknown users, 400 on
    a malformed body, Cache-Control: no-store
  - Authorization header variants: missing, one part, three parts, wrong
    scheme, lowercase scheme, expired, forged
  - 403 payload of the permission gate (permissaoRequerida, seuPerfil)
  - administrative unlock through POST /api/funcionarios/{id}/desbloquear

Fixtures used (from conftest.py):
  - api_client: ApiContext with one account per role. Usernames are the
    lower-cased role values, password "testpass123".
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone

from jose import jwt

from auth.models import Role, StaffAccount
from auth.tokens import create_access_token, decode_access_token, hash_password

LOGIN = "/api/auth/login"


def _new_account(ctx, password: str = "senha123", role: Role = Role.FRONT_DESK) -> StaffAccount:
    """Create a throwaway account so lockout tests never touch the shared ones."""
    username = f"user_{uuid.uuid4().hex[:10]}"
    return ctx.staff_store.create_staff(
        StaffAccount(
            username=username,
            hashed_password=hash_password(password),
            role=role,
            full_name="Conta Teste",
            email=f"{username}@academia.com",
            phone="11900000000",
            birth_date="1995-07-07",
            job_title="Recepcionista",
        )
    )


def _login(ctx, username: str, password: str):
    return ctx.client.post(LOGIN, json={"userName": username, "senha": password})


class TestLogin:
    def test_success(self, api_client) -> None:
        resp = _login(api_client, "gerente", "testpass123")
        assert resp.status_code == 200
        body = resp.json()
        assert body["message"] == "Login successful"
        assert body["funcionario"]["userName"] == "gerente"
        assert body["funcionario"]["perfil"] == "GERENTE"
        claims = decode_access_token(body["token"])
        assert claims is not None
        assert claims.user_id == api_client.ids[Role.MANAGER]
        assert claims.role is Role.MANAGER

    def test_token_body_carries_front_end_fields(self, api_client) -> None:
        token = _login(api_client, "gerente", "testpass123").json()["token"]
        payload = jwt.get_unverified_claims(token)
        assert payload["id"] == api_client.ids[Role.MANAGER]
        assert payload["userName"] == "gerente"
        assert payload["perfil"] == "GERENTE"

    def test_response_is_not_cacheable(self, api_client) -> None:
        ok = _login(api_client, "instrutor", "testpass123")
        bad = _login(api_client, "nobody", "whatever")
        assert ok.headers["cache-control"] == "no-store"
        assert bad.headers["cache-control"] == "no-store"

    def test_response_never_contains_hash(self, api_client) -> None:
        body = _login(api_client, "instrutor", "testpass123").json()
        assert "hashed_password" not in body["funcionario"]
        assert "senha" not in body["funcionario"]

    def test_lockout_sequence(self, api_client) -> None:
        account = _new_account(api_client)

        first = _login(api_client, account.username, "wrong-1")
        assert first.status_code == 401
        assert first.json() == {"message": "Invalid credentials", "tentativasRestantes": 2}

        second = _login(api_client, account.username, "wrong-2")
        assert second.status_code == 401
        assert second.json()["tentativasRestantes"] == 1

        third = _login(api_client, account.username, "wrong-3")
        assert third.status_code == 403
        assert set(third.json()) == {"message"}

        correct = _login(api_client, account.username, "senha123")
        assert correct.status_code == 403
        assert correct.json()["message"] != third.json()["message"]

    def test_success_resets_counter(self, api_client) -> None:
        account = _new_account(api_client)
        _login(api_client, account.username, "wrong")
        _login(api_client, account.username, "wrong")
        assert _login(api_client, account.username, "senha123").status_code == 200
        assert _login(api_client, account.username, "wrong").json()["tentativasRestantes"] == 2

    def test_unknown_user_gets_generic_401(self, api_client) -> None:
        resp = _login(api_client, "does_not_exist", "whatever")
        assert resp.status_code == 401
        assert resp.json() == {"message": "Invalid credentials"}

    def test_missing_password_is_validation_error(self, api_client) -> None:
        resp = api_client.client.post(LOGIN, json={"userName": "gerente"})
        assert resp.status_code == 400
        body = resp.json()
        assert body["message"] == "Validation error"
        assert [e["field"] for e in body["errors"]] == ["senha"]


class TestBearerAuth:
    def test_missing_header(self, api_client) -> None:
        resp = api_client.client.get("/api/auth/me")
        assert resp.status_code == 401
        assert resp.json() == {"message": "Token not provided"}

    def test_single_part_header(self, api_client) -> None:
        resp = api_client.client.get("/api/auth/me", headers={"Authorization": "Bearer"})
        assert resp.status_code == 401
        assert resp.json() == {"message": "Invalid token format"}

    def test_three_part_header(self, api_client) -> None:
        token = api_client.tokens[Role.ADMIN]
        resp = api_client.client.get("/api/auth/me", headers={"Authorization": f"Bearer {token} extra"})
        assert resp.status_code == 401
        assert resp.json() == {"message": "Invalid token format"}

    def test_wrong_scheme(self, api_client) -> None:
        token = api_client.tokens[Role.ADMIN]
        resp = api_client.client.get("/api/auth/me", headers={"Authorization": f"Basic {token}"})
        assert resp.status_code == 401
        assert resp.json() == {"message": "Malformed token"}

    def test_scheme_is_case_insensitive(self, api_client) -> None:
        token = api_client.tokens[Role.ADMIN]
        resp = api_client.client.get("/api/auth/me", headers={"Authorization": f"bearer {token}"})
        assert resp.status_code == 200

    def test_expired_token(self, api_client) -> None:
        issued = datetime.now(timezone.utc) - timedelta(hours=25)
        token = create_access_token(api_client.ids[Role.ADMIN], "administrador", Role.ADMIN, issued_at=issued)
        resp = api_client.client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 401
        assert resp.json() == {"message": "Invalid or expired token"}

    def test_garbage_token(self, api_client) -> None:
        resp = api_client.client.get("/api/auth/me", headers={"Authorization": "Bearer abc.def.ghi"})
        assert resp.status_code == 401

    def test_me_lists_role_permissions(self, api_client) -> None:
        resp = api_client.client.get("/api/auth/me", headers=api_client.headers(Role.INSTRUCTOR))
        assert resp.status_code == 200
        body = resp.json()
        assert body["userName"] == "instrutor"
        assert body["perfil"] == "INSTRUTOR"
        assert "CRIAR_CHECKIN" in body["permissoes"]
        assert "CRIAR_ALUNO" not in body["permissoes"]


class TestPermissionGate:
    def test_denied_payload(self, api_client) -> None:
        resp = api_client.client.post("/api/alunos", json={}, headers=api_client.headers(Role.INSTRUCTOR))
        assert resp.status_code == 403
        body = resp.json()
        assert body["permissaoRequerida"] == "CRIAR_ALUNO"
        assert body["seuPerfil"] == "INSTRUTOR"
        assert "message" in body

    def test_front_desk_cannot_list_staff(self, api_client) -> None:
        resp = api_client.client.get("/api/funcionarios", headers=api_client.headers(Role.FRONT_DESK))
        assert resp.status_code == 403
        assert resp.json()["permissaoRequerida"] == "LISTAR_FUNCIONARIOS"

    def test_manager_can_list_staff(self, api_client) -> None:
        resp = api_client.client.get("/api/funcionarios", headers=api_client.headers(Role.MANAGER))
        assert resp.status_code == 200


class TestAdministrativeUnlock:
    def _lock(self, ctx, account: StaffAccount) -> None:
        for _ in range(3):
            _login(ctx, account.username, "wrong")

    def test_admin_unlocks_account(self, api_client) -> None:
        account = _new_account(api_client)
        self._lock(api_client, account)
        assert api_client.staff_store.get_by_id(account.id).locked is True

        resp = api_client.client.post(
            f"/api/funcionarios/{account.id}/desbloquear", headers=api_client.headers(Role.ADMIN)
        )
        assert resp.status_code == 200
        assert resp.json()["funcionario"]["bloqueado"] is False
        assert _login(api_client, account.username, "senha123").status_code == 200

    def test_manager_cannot_unlock(self, api_client) -> None:
        account = _new_account(api_client)
        self._lock(api_client, account)
        resp = api_client.client.post(
            f"/api/funcionarios/{account.id}/desbloquear", headers=api_client.headers(Role.MANAGER)
        )
        assert resp.status_code == 403
        assert resp.json()["permissaoRequerida"] == "EDITAR_FUNCIONARIO"

    def test_unlock_unknown_staff(self, api_client) -> None:
        resp = api_client.client.post("/api/funcionarios/99999/desbloquear", headers=api_client.headers(Role.ADMIN))
        assert resp.status_code == 404
        assert resp.json() == {"message": "Staff member not found"}
