import pytest
from facilityhub.services import auth as auth_service
from facilityhub.models.user import User, UserRole

def test_password_hashing():
    """Test that password hashing and verification works correctly."""
    password = "MySecurePassword123!"
    hashed = auth_service.get_password_hash(password)
    assert hashed != password
    assert auth_service.verify_password(password, hashed)
    assert not auth_service.verify_password("WrongPassword", hashed)

def test_create_user(db_session):
    """Test creating a new user directly through the model."""
    email = "newuser@example.com"
    password = "Password123!"

    user = User(
        email=email,
        hashed_password=auth_service.get_password_hash(password),
        role=UserRole.USER,
        is_active=True
    )
    db_session.add(user)
    db_session.commit()

    saved_user = db_session.query(User).filter(User.email == email).first()
    assert saved_user is not None
    assert saved_user.role == UserRole.USER
    assert saved_user.company_id is None
    assert auth_service.verify_password(password, saved_user.hashed_password)

def test_access_token_round_trip(admin_user):
    """Access tokens carry the user's role and company and decode back."""
    token = auth_service.create_access_token(auth_service.build_token_claims(admin_user))
    payload = auth_service.decode_access_token(token)
    assert payload["sub"] == admin_user.email
    assert payload["role"] == "admin"
    assert payload["company_id"] == admin_user.company_id
    assert payload["type"] == "access"

def test_refresh_tokens_are_distinct():
    """Two refresh tokens for the same subject never collide."""
    first = auth_service.create_refresh_token({"sub": "a@example.com"})
    second = auth_service.create_refresh_token({"sub": "a@example.com"})
    assert first != second
    assert auth_service.decode_access_token(first)["type"] == "refresh"

def test_invalid_token_decodes_to_none():
    assert auth_service.decode_access_token("not-a-jwt") is None
