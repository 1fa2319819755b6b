from enum import Enum


class ActivityType(str, Enum):
    BOOKING = "booking"
    PROFILE_UPDATE = "profile_update"
    PASSWORD_CHANGE = "password_change"
    LOGIN = "login"
    SIGNUP = "signup"
