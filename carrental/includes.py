from fastapi import FastAPI
from carrental.routes.auth.router import auth_router as auth
from carrental.routes.user.router import user_router as user
from carrental.routes.activity.router import activity_router as activity
from carrental.routes.car.router import car_router as car
from carrental.routes.service.router import service_router as service
from carrental.routes.booking.router import booking_router as booking
from carrental.routes.review.router import review_router as review


def get_all_routers():
    return [
        auth,
        user,
        activity,
        car,
        service,
        booking,
        review,
    ]


def gather_routers(app: FastAPI, routers: list) -> FastAPI:
    for router in routers:
        app.include_router(router)
    return app
