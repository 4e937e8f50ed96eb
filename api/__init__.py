"""HTTP interface: lead and catalog routers, response envelope, error mapping."""

from api.base import APIResponse, ErrorCodes, error_response, success_response
from api.errors import register_error_handlers
from api.middleware import RequestIDMiddleware, current_request_id
