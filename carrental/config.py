import os

from dotenv import load_dotenv

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "mongodb://localhost:27017")
DATABASE_NAME = os.getenv("DATABASE_NAME", "car_rental")
MONGO_SERVER_SELECTION_TIMEOUT_MS = int(os.getenv("MONGO_SERVER_SELECTION_TIMEOUT_MS", "5000"))

USER_COLLECTION = os.getenv("USER_COLLECTION", "users")
CAR_COLLECTION = os.getenv("CAR_COLLECTION", "cars")
BOOKING_COLLECTION = os.getenv("BOOKING_COLLECTION", "bookings")
REVIEW_COLLECTION = os.getenv("REVIEW_COLLECTION", "reviews")
SERVICE_COLLECTION = os.getenv("SERVICE_COLLECTION", "additional_services")
ACTIVITY_COLLECTION = os.getenv("ACTIVITY_COLLECTION", "user_activities")

JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "change-me-secret")
ALGORITHM = os.getenv("ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
ALLOW_ORIGINS = [o.strip() for o in os.getenv("ALLOW_ORIGINS", "*").split(",") if o.strip()]

# booking stock policy: by default only cancel/delete hand a unit back
RELEASE_STOCK_ON_REJECT = os.getenv("RELEASE_STOCK_ON_REJECT", "false").lower() == "true"
RELEASE_STOCK_ON_COMPLETE = os.getenv("RELEASE_STOCK_ON_COMPLETE", "false").lower() == "true"
