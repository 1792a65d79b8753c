"""
Firewall enforcement for Starlette/FastAPI handlers.

wrap_handler guards a single endpoint, FirewallRoute applies that guard ahead of
FastAPI request parsing, and FirewallMiddleware guards every HTTP request reaching
an app. Only the transport peer address is used; forwarded headers are never
trusted.
"""
import functools
import inspect
import logging
from http import HTTPStatus
from typing import Callable, Optional

from fastapi import Request, Response
from fastapi.responses import PlainTextResponse
from fastapi.routing import APIRoute
from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from endpoint_firewall.core.errors import SourceAddressUnresolvableError
from endpoint_firewall.firewall.engine import Firewall
from endpoint_firewall.firewall.netblocks import IPAddress, parse_source_address

logger = logging.getLogger("endpoint_firewall.firewall")

FORBIDDEN_STATUS = HTTPStatus.FORBIDDEN.value
FORBIDDEN_BODY = HTTPStatus.FORBIDDEN.phrase


def extract_source_address(request: Request) -> IPAddress:
    """
    Get the source IP of a request from the connection peer.

    Raises:
        SourceAddressUnresolvableError: If there is no peer or it isn't an IP address
    """
    client = request.client
    if client is None or not client.host:
        raise SourceAddressUnresolvableError(None)
    addr = parse_source_address(client.host)
    if addr is None:
        raise SourceAddressUnresolvableError(client.host)
    return addr


def forbidden_response() -> Response:
    """The fixed rejection. Says nothing about which rule matched."""
    return PlainTextResponse(FORBIDDEN_BODY, status_code=FORBIDDEN_STATUS)


def is_request_allowed(firewall: Firewall, request: Request) -> bool:
    """Run the firewall decision for a request, logging the drop if enabled."""
    src: Optional[IPAddress]
    try:
        src = extract_source_address(request)
    except SourceAddressUnresolvableError as e:
        logger.debug(str(e))
        src = None

    path = request.url.path
    if firewall.authorize(path, src):
        return True

    if firewall.log:
        logger.warning(
            f"[FIREWALL] blocked request from {src if src is not None else 'unknown'} for {path}"
        )
    return False


# Keyword added to a wrapper's signature when the handler takes no Request,
# so FastAPI still passes the Request in
INJECTED_REQUEST_PARAM = "_firewall_request"


def _find_request(args: tuple, kwargs: dict) -> Request:
    for value in list(args) + list(kwargs.values()):
        if isinstance(value, Request):
            return value
    raise TypeError("firewall-wrapped handlers must receive the Request")


def _takes_request(signature: inspect.Signature) -> bool:
    for param in signature.parameters.values():
        annotation = param.annotation
        if inspect.isclass(annotation) and issubclass(annotation, Request):
            return True
    return False


def _with_request_param(signature: inspect.Signature) -> inspect.Signature:
    params = list(signature.parameters.values())
    injected = inspect.Parameter(
        INJECTED_REQUEST_PARAM, inspect.Parameter.KEYWORD_ONLY, annotation=Request
    )
    # Keyword-only parameters go before **kwargs
    index = len(params)
    if params and params[-1].kind is inspect.Parameter.VAR_KEYWORD:
        index -= 1
    params.insert(index, injected)
    return signature.replace(parameters=params)


def wrap_handler(firewall: Firewall, handler: Callable) -> Callable:
    """
    Wrap a Starlette or FastAPI endpoint so it only runs for allowed requests.

    The wrapper keeps the handler's signature, so FastAPI still injects the same
    parameters. A handler that doesn't declare a Request gets one added to the
    wrapper's signature, and the handler is called without it. Sync handlers run
    in the threadpool, as Starlette would run them.

    For FastAPI routes, register the wrapper on a FirewallRoute: a plain APIRoute
    reads the body and runs dependencies before the wrapper gets to decide.
    """
    is_async = inspect.iscoroutinefunction(handler) or inspect.iscoroutinefunction(
        getattr(handler, "__call__", None)
    )

    @functools.wraps(handler)
    async def guarded(*args, **kwargs):
        request = kwargs.pop(INJECTED_REQUEST_PARAM, None)
        if request is None:
            request = _find_request(args, kwargs)
        if not is_request_allowed(firewall, request):
            return forbidden_response()
        if is_async:
            return await handler(*args, **kwargs)
        return await run_in_threadpool(handler, *args, **kwargs)

    signature = inspect.signature(handler)
    if not _takes_request(signature):
        guarded.__signature__ = _with_request_param(signature)
    guarded.__firewall__ = firewall
    return guarded


class FirewallRoute(APIRoute):
    """
    APIRoute that runs the firewall before FastAPI reads the body or solves dependencies.

    Endpoints wrapped with Firewall.wrap are unwrapped here and guarded at the route
    level, so a denied peer never reaches validation, dependencies or the handler.
    Other endpoints behave as on a plain APIRoute.

    Usage: APIRouter(route_class=FirewallRoute)
    """

    def __init__(self, path: str, endpoint: Callable, **kwargs):
        wrapped = endpoint
        self.firewall: Optional[Firewall] = getattr(endpoint, "__firewall__", None)
        if self.firewall is not None:
            endpoint = endpoint.__wrapped__
        super().__init__(path, endpoint, **kwargs)
        # include_router rebuilds routes from .endpoint; hand it the wrapped one
        self.endpoint = wrapped

    def get_route_handler(self) -> Callable:
        route_handler = super().get_route_handler()
        firewall = self.firewall
        if firewall is None:
            return route_handler

        async def guarded_route_handler(request: Request) -> Response:
            if not is_request_allowed(firewall, request):
                return forbidden_response()
            return await route_handler(request)

        return guarded_route_handler


class FirewallMiddleware(BaseHTTPMiddleware):
    """Middleware applying the firewall to every HTTP request of an app."""

    def __init__(self, app: ASGIApp, firewall: Firewall):
        super().__init__(app)
        self.firewall = firewall

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if not is_request_allowed(self.firewall, request):
            return forbidden_response()
        return await call_next(request)
