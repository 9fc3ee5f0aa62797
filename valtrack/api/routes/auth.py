# =======================================================================================
# valtrack/api/routes/auth.py - Login Endpoint
# =======================================================================================
from fastapi import APIRouter, Depends
from sqlalchemy.engine import Connection
from ...models.schemas import LoginRequest, LoginResponse
from ...services.auth_service import AuthService
from ..dependencies import get_db_connection

router = APIRouter()
auth_service = AuthService()


@router.post("/auth/login", response_model=LoginResponse)
def login(request: LoginRequest, conn: Connection = Depends(get_db_connection)):
    """Username or email plus password; only active profiles may sign in."""
    return auth_service.login(conn, request.username, request.password)
