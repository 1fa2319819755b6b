from fastapi.responses import JSONResponse
from fastapi import status
from carrental.utilities.convert_object_id import convert_object_ids


def return_json(message: str = "Success", data=None, code: int = status.HTTP_200_OK, page_info: dict = None):
    content = {"status": "success", "message": message, "data": convert_object_ids(data)}
    if page_info is not None:
        content["page_info"] = page_info
    return JSONResponse(status_code=code, content=content)


def return_error_json(message: str = "Error", error_code: str = "VALIDATION_ERROR", code: int = status.HTTP_400_BAD_REQUEST, errors: list = None, headers: dict = None):
    content = {"status": "error", "code": error_code, "message": message}
    if errors is not None:
        content["errors"] = errors
    return JSONResponse(status_code=code, content=content, headers=headers)
