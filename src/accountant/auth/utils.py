"""
Account management behind the /users endpoints and `flask setup create-admin`.
"""

import sqlalchemy as sa
from flask import current_app

from accountant import db
from accountant.exceptions import (
    AuthenticationFailed,
    Conflict,
    NotFound,
    ValidationError,
)
from accountant.ledger.store import atomic
from accountant.models import User

MIN_PASSWORD_LENGTH = 6


def _check_password_length(password: str) -> None:
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
        )


def _identity_taken(username=None, email=None, exclude_id=None) -> bool:
    clauses = []
    if username:
        clauses.append(User.username == username)
    if email:
        clauses.append(User.email == email)
    if not clauses:
        return False
    query = sa.select(User.id).where(sa.or_(*clauses))
    if exclude_id is not None:
        query = query.where(User.id != exclude_id)
    return db.session.execute(query).first() is not None


def authenticate(username, password) -> User:
    if not username or not password:
        raise ValidationError("Username and password are required")
    user = db.session.execute(
        sa.select(User).filter_by(username=username)
    ).scalar_one_or_none()
    if user is None or not user.check_password(password):
        raise AuthenticationFailed("Invalid username or password")
    return user


def get_user(user_id: int) -> User:
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFound("User not found", id=user_id)
    return user


def list_users():
    return db.session.execute(
        sa.select(User).order_by(User.created_at.desc(), User.id.desc())
    ).scalars().all()


def create_user(payload: dict) -> User:
    username = payload.get("username")
    full_name = payload.get("fullName") or payload.get("full_name")
    email = payload.get("email")
    password = payload.get("password")
    repeat_password = payload.get("repeatPassword") or payload.get("repeat_password")

    if not all([username, full_name, email, password, repeat_password]):
        raise ValidationError("All fields are required")
    if password != repeat_password:
        raise ValidationError("Passwords do not match")
    _check_password_length(password)
    if _identity_taken(username=username, email=email):
        raise Conflict("Username or email already exists")

    user = User(
        username=username,
        full_name=full_name,
        phone=payload.get("phone") or None,
        email=email,
    )
    user.set_password(password)
    with atomic("creating account"):
        db.session.add(user)
    current_app.logger.info(f"User '{username}' created.")
    return user


def update_user(user_id: int, payload: dict) -> User:
    user = get_user(user_id)
    username = payload.get("username")
    email = payload.get("email")
    full_name = payload.get("fullName") or payload.get("full_name")
    password = payload.get("password")

    if not any([username, email, full_name, password, payload.get("phone") is not None]):
        raise ValidationError("No fields to update")
    if _identity_taken(username=username, email=email, exclude_id=user.id):
        raise Conflict("Username or email already exists")
    if password:
        _check_password_length(password)

    with atomic("updating user"):
        if username:
            user.username = username
        if email:
            user.email = email
        if full_name:
            user.full_name = full_name
        if payload.get("phone") is not None:
            user.phone = payload["phone"] or None
        if password:
            user.set_password(password)
    return user


def delete_user(user_id: int) -> None:
    user = get_user(user_id)
    with atomic("deleting user"):
        db.session.delete(user)


def create_admin() -> bool:
    """
    Create the admin account from ADMIN_USERNAME / ADMIN_PASSWORD.
    Returns False when it already exists.
    """
    username = current_app.config["ADMIN_USERNAME"]
    if db.session.execute(sa.select(User).filter_by(username=username)).scalar_one_or_none():
        current_app.logger.info("Admin user already exists.")
        return False

    admin = User(
        username=username,
        full_name="Administrator",
        email=f"{username}@localhost",
    )
    admin.set_password(current_app.config["ADMIN_PASSWORD"])
    with atomic("creating admin"):
        db.session.add(admin)
    current_app.logger.info(f"Admin user '{username}' created successfully.")
    return True
