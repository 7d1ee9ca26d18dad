# messaging/exceptions.py
from rest_framework.exceptions import APIException


class ReplyNotFound(APIException):
    status_code = 404
    default_detail = "No reply with that id exists on this thread."
    default_code = "reply_not_found"
