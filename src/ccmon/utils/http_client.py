import httpx

from ..core.config import config


def get_async_http_client(verify: bool = True, retries: int = None) -> httpx.AsyncClient:
    """
    Returns an httpx.AsyncClient for fetching pricing documents.

    Timeouts and the User-Agent come from the configuration. Failed
    connection attempts are retried by the transport ``retries`` times.
    """
    timeout = httpx.Timeout(config.DEFAULT_TIMEOUT_READ, connect=config.DEFAULT_TIMEOUT_CONNECT)
    transport = httpx.AsyncHTTPTransport(
        verify=verify,
        retries=config.HTTP_RETRIES if retries is None else retries,
    )
    return httpx.AsyncClient(
        timeout=timeout,
        headers={"User-Agent": config.USER_AGENT, "Accept": "application/json"},
        transport=transport,
        follow_redirects=True,
    )
