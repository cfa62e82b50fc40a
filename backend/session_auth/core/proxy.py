"""Trusted reverse-proxy headers (client IP recorded on refresh tokens)."""

from __future__ import annotations

from flask import Flask
from werkzeug.middleware.proxy_fix import ProxyFix


def init_app(app: Flask) -> None:
    """Wrap the WSGI app in :class:`ProxyFix` unless ``USE_PROXYFIX`` is off.

    ``PROXYFIX_X_FOR`` is the number of proxies in front of the app (default
    ``1``). Once applied, ``request.remote_addr`` is the client address from
    ``X-Forwarded-For``; that is the value stored as ``created_by_ip`` and
    ``revoked_by_ip``. Setting it higher than the real hop count lets clients
    spoof their address.
    """
    if not app.config.get("USE_PROXYFIX", True):
        return
    trusted_hops = int(app.config.get("PROXYFIX_X_FOR", 1))
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=trusted_hops, x_proto=1, x_host=1)
