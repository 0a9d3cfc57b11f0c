import logging
from fastapi import APIRouter, Depends, HTTPException, status
from quarry_ledger.core.auth import create_access_token, get_current_user, get_user_repository, require_admin
from quarry_ledger.core.security import verify_password
from quarry_ledger.models.user import User
from quarry_ledger.repositories.user_repo import UserRepository
from quarry_ledger.schemas.auth import TokenResponse, UserLogin, UserRegister, UserResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/login", response_model=TokenResponse)
async def login(
    credentials: UserLogin,
    user_repo: UserRepository = Depends(get_user_repository)
):
    """Login with username and password"""
    user = await user_repo.get_user_by_username(credentials.username.strip())
    if user is None or not verify_password(credentials.password, user.password_hash):
        logger.warning("Failed login attempt for %s", credentials.username)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return TokenResponse(
        access_token=create_access_token(user),
        user=UserResponse.model_validate(user),
    )


@router.get("/me", response_model=UserResponse)
async def me(current_user: User = Depends(get_current_user)):
    """Get current user information"""
    return UserResponse.model_validate(current_user)


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register(
    user_in: UserRegister,
    admin: User = Depends(require_admin),
    user_repo: UserRepository = Depends(get_user_repository)
):
    """Create a user account (admin only)"""
    user = await user_repo.create_user(
        username=user_in.username.strip(),
        password=user_in.password,
        full_name=user_in.full_name,
        role=user_in.role,
    )
    logger.info("User %s created by %s", user.username, admin.username)
    return UserResponse.model_validate(user)
