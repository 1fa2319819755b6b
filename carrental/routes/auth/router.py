import logging
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError
from carrental.config import USER_COLLECTION
from carrental.database.db import get_database
from carrental.models.activity.activity import ActivityType
from carrental.models.user.user import Role, UserRegister
from carrental.services.activity import record_activity
from carrental.services.json import return_json
from carrental.utilities.errors import ConflictError, InternalError, UnauthorizedError
from carrental.utilities.helper import utcnow
from carrental.utilities.security import create_access_token, get_current_user, hash_password, verify_password

logger = logging.getLogger(__name__)

auth_router = APIRouter(
    prefix="/auth",
    tags=["Auth"],
)


# Register a new customer account
@auth_router.post("/register")
def register(data: UserRegister, db: Database = Depends(get_database)):
    try:
        users = db[USER_COLLECTION]
        email = data.email.lower()
        if users.find_one({"email": email}):
            raise ConflictError("Email already registered")

        now = utcnow()
        user = {
            "name": data.name,
            "email": email,
            "password": hash_password(data.password),
            "role": Role.USER.value,
            "phone": data.phone,
            "address": data.address,
            "profile_image": None,
            "created_at": now,
            "updated_at": now,
        }
        try:
            result = users.insert_one(user)
        except DuplicateKeyError:
            raise ConflictError("Email already registered")

        record_activity(db, result.inserted_id, ActivityType.SIGNUP, "Account created")
        access_token = create_access_token(data={"sub": str(result.inserted_id), "role": user["role"]})

        return return_json(
            message="User registered successfully",
            data={
                "access_token": access_token,
                "token_type": "bearer",
                "user": {"_id": result.inserted_id, "name": user["name"], "email": email, "role": user["role"]},
            },
            code=status.HTTP_201_CREATED,
        )

    except HTTPException as e:
        raise e
    except Exception:
        logger.exception("Registration failed")
        raise InternalError("Registration failed")


# Login with email + password (OAuth2 password form)
@auth_router.post("/login")
def login(form_data: OAuth2PasswordRequestForm = Depends(), db: Database = Depends(get_database)):
    try:
        user = db[USER_COLLECTION].find_one({"email": form_data.username.lower()})
        if not user or not verify_password(form_data.password, user["password"]):
            raise UnauthorizedError("Invalid credentials", code="INVALID_CREDENTIALS")

        role = user.get("role", Role.USER.value)
        access_token = create_access_token(data={"sub": str(user["_id"]), "role": role})
        record_activity(db, user["_id"], ActivityType.LOGIN, "Logged in")

        return {
            "access_token": access_token,
            "token_type": "bearer",
            "status": "success",
            "message": f"{role.capitalize()} login successful",
            "user": {
                "_id": str(user["_id"]),
                "name": user.get("name"),
                "email": user["email"],
                "role": role,
            },
        }

    except HTTPException as e:
        raise e
    except Exception:
        logger.exception("Login failed")
        raise InternalError("Login failed")


# Get user profile
@auth_router.get("/profile")
def get_profile(current_user: dict = Depends(get_current_user)):
    return return_json(message=f"Welcome {current_user['name']}", data=current_user)
