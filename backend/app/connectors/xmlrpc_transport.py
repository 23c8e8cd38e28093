import asyncio
import logging
import xml.etree.ElementTree as ET
from typing import Any, List, Optional

import httpx

from app.connectors import xmlrpc_codec
from app.exceptions import MalformedResponse, RpcFault, TransportError

log = logging.getLogger(__name__)

# Only these are worth another attempt; faults and bad bodies are deterministic.
# RemoteProtocolError is a keep-alive socket the server dropped, asyncio.TimeoutError
# an attempt that outlived its deadline.
RETRYABLE_ERRORS = (httpx.TimeoutException, httpx.NetworkError, httpx.RemoteProtocolError, asyncio.TimeoutError)


def build_method_call(method_name: str, args: List[Any]) -> str:
    """Serialize a methodCall envelope, each argument encoded independently."""
    root = ET.Element("methodCall")
    ET.SubElement(root, "methodName").text = method_name
    params = ET.SubElement(root, "params")
    for arg in args:
        param = ET.SubElement(params, "param")
        param.append(xmlrpc_codec.to_element(xmlrpc_codec.encode(arg)))
    return '<?xml version="1.0"?>\n' + ET.tostring(root, encoding="unicode")


def parse_method_response(body: str) -> Any:
    """
    Parse a methodResponse body.

    Raises RpcFault for a <fault> answer and MalformedResponse when the body
    is not a methodResponse at all.
    """
    try:
        root = ET.fromstring(body)
    except ET.ParseError as e:
        raise MalformedResponse(f"Invalid XML in Odoo response: {e}") from e

    if root.tag != "methodResponse":
        raise MalformedResponse(f"Unexpected root element <{root.tag}> in Odoo response")

    try:
        fault_value = root.find("fault/value")
        if fault_value is not None:
            fault = xmlrpc_codec.decode(xmlrpc_codec.from_element(fault_value))
            if not isinstance(fault, dict):
                fault = {"faultString": str(fault)}
            raise RpcFault(fault.get("faultCode"), fault.get("faultString", ""))

        value = root.find("params/param/value")
        if value is None:
            raise MalformedResponse("Odoo response has neither params nor fault")
        return xmlrpc_codec.decode(xmlrpc_codec.from_element(value))
    except ValueError as e:
        raise MalformedResponse(f"Unreadable value in Odoo response: {e}") from e


class XmlRpcTransport:
    """
    Posts XML-RPC calls to `{base_url}/xmlrpc/2/{service}`.

    Each attempt is bounded by `timeout` seconds. Timeouts and network errors
    are retried with exponential backoff (1s, 2s, 4s, ...) up to `max_retries`
    total attempts; faults and any other error surface immediately.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        max_retries: int = 3,
        client: Optional[httpx.AsyncClient] = None
    ):
        self.base_url = base_url.strip().rstrip("/")
        self.timeout = timeout
        self.max_retries = max_retries
        self.client = client or httpx.AsyncClient(timeout=timeout, follow_redirects=True)
        self.headers = {"Content-Type": "text/xml"}

    async def call(self, service: str, method: str, args: List[Any], max_retries: Optional[int] = None) -> Any:
        retries = max(1, max_retries if max_retries is not None else self.max_retries)
        url = f"{self.base_url}/xmlrpc/2/{service}"
        body = build_method_call(method, args)

        for attempt in range(1, retries + 1):
            try:
                log.trace(f"XML-RPC {service}.{method} -> {url} (attempt {attempt}/{retries})")
                # httpx bounds each connect and read, not the whole exchange
                response = await asyncio.wait_for(
                    self.client.post(url, content=body, headers=self.headers, timeout=self.timeout),
                    self.timeout
                )
                log.trace(f"XML-RPC response: {response.status_code}")
                response.raise_for_status()
                return parse_method_response(response.text)

            except RETRYABLE_ERRORS as e:
                if attempt == retries:
                    log.error(f"XML-RPC {service}.{method} failed after {attempt} attempts: {e!r}")
                    raise TransportError(
                        f"Could not reach Odoo at {url} after {attempt} attempts: {str(e) or type(e).__name__}",
                        attempts=attempt,
                        context={"service": service, "method": method}
                    ) from e

                delay = 2 ** (attempt - 1)
                log.warning(f"Odoo connection attempt {attempt} failed ({type(e).__name__}), retrying in {delay}s...")
                await asyncio.sleep(delay)

            except httpx.HTTPStatusError as e:
                log.error(f"Odoo HTTP error for {e.request.url}: {e.response.status_code} - {e.response.text[:500]}")
                raise

    async def close(self) -> None:
        await self.client.aclose()
