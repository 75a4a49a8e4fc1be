"""
CA Service Desk Manager SOAP Adapter

Architectural Intent:
- Implements ServiceDeskPort against the SDM r11+ web service
- Uses a requests Session for the HTTP layer and ElementTree for the XML
- Blocking I/O runs in the default executor so callers stay async

Design Decisions:
- Document/literal envelopes with parameters qualified in the SDM namespace
- Array parameters (attrVals, attributes, ...) are repeated <string> children,
  preserving the order the caller gave
- Responses are read by local element name, ignoring namespaces
- SOAP faults, HTTP errors, timeouts and unparseable bodies all become
  RemoteError with the raw body attached when there is one
"""

from __future__ import annotations

import asyncio
import logging
import urllib.parse
import xml.etree.ElementTree as ET
from typing import Optional, Sequence, Union

import requests

from sdm_relay.domain.ports.service_desk_port import AuthenticationError, RemoteError
from sdm_relay.domain.value_objects.ticket_reference import TicketReference

logger = logging.getLogger(__name__)

SOAP_ENV_NAMESPACE = "http://schemas.xmlsoap.org/soap/envelope/"
SDM_NAMESPACE = "http://www.ca.com/UnicenterServicePlus/ServiceDesk"

ParamValue = Union[str, Sequence[str]]


def service_url(endpoint: str) -> str:
    """Strip a trailing ?wsdl so the endpoint can be given as the WSDL URL."""
    parsed = urllib.parse.urlsplit(endpoint)
    if parsed.query.lower() == "wsdl":
        parsed = parsed._replace(query="")
    return urllib.parse.urlunsplit(parsed)


def flatten(attributes: Sequence[tuple[str, str]]) -> list[str]:
    """[(name, value), ...] -> [name, value, name, value, ...]"""
    values: list[str] = []
    for name, value in attributes:
        values.append(name)
        values.append(value)
    return values


def build_envelope(operation: str, params: Sequence[tuple[str, ParamValue]]) -> bytes:
    envelope = ET.Element(f"{{{SOAP_ENV_NAMESPACE}}}Envelope")
    body = ET.SubElement(envelope, f"{{{SOAP_ENV_NAMESPACE}}}Body")
    call = ET.SubElement(body, f"{{{SDM_NAMESPACE}}}{operation}")
    for name, value in params:
        param = ET.SubElement(call, f"{{{SDM_NAMESPACE}}}{name}")
        if isinstance(value, str):
            param.text = value
        else:
            for item in value:
                ET.SubElement(param, f"{{{SDM_NAMESPACE}}}string").text = item
    return ET.tostring(envelope, encoding="utf-8", xml_declaration=True)


def _decode(raw: bytes) -> str:
    # SDM answers text/xml without a charset; requests would assume latin-1
    return raw.decode("utf-8", errors="replace")


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def find_text(root: ET.Element, name: str) -> Optional[str]:
    for element in root.iter():
        if _local_name(element.tag) == name:
            return (element.text or "").strip()
    return None


def fault_string(root: ET.Element) -> Optional[str]:
    for element in root.iter():
        if _local_name(element.tag) == "Fault":
            return find_text(element, "faultstring") or "SOAP fault"
    return None


class SdmSoapAdapter:
    """ServiceDeskPort implementation speaking SOAP over HTTP."""

    def __init__(
        self,
        endpoint: str,
        timeout_seconds: float = 30.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        if not endpoint:
            raise ValueError("SDM endpoint cannot be empty")
        self._url = service_url(endpoint)
        self._timeout = timeout_seconds
        self._session = session or requests.Session()

    @property
    def url(self) -> str:
        return self._url

    def close(self) -> None:
        self._session.close()

    # -- transport -------------------------------------------------------------

    def _post(self, operation: str, params: Sequence[tuple[str, ParamValue]]) -> tuple[ET.Element, str]:
        logger.debug("SDM call %s -> %s", operation, self._url)

        try:
            response = self._session.post(
                self._url,
                data=build_envelope(operation, params),
                headers={
                    "Content-Type": "text/xml; charset=utf-8",
                    "SOAPAction": '""',
                },
                timeout=self._timeout,
            )
            response.raise_for_status()
        except requests.HTTPError as e:
            # SDM reports faults with HTTP 500 and a fault envelope
            failed = e.response
            body = _decode(failed.content) if failed is not None else ""
            status = failed.status_code if failed is not None else "error"
            try:
                fault = fault_string(ET.fromstring(body))
            except ET.ParseError:
                fault = None
            raise RemoteError(
                fault or f"{operation} failed with HTTP {status}", body or None
            ) from e
        except requests.Timeout as e:
            raise RemoteError(f"{operation} timed out: {e}") from e
        except requests.RequestException as e:
            raise RemoteError(f"{operation} failed: {e}") from e

        body = _decode(response.content)
        try:
            root = ET.fromstring(body)
        except ET.ParseError as e:
            raise RemoteError(f"{operation} returned malformed XML: {e}", body) from e

        fault = fault_string(root)
        if fault is not None:
            raise RemoteError(fault, body)
        return root, body

    async def _call(
        self, operation: str, params: Sequence[tuple[str, ParamValue]]
    ) -> tuple[ET.Element, str]:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._post, operation, params)

    def _required(self, root: ET.Element, body: str, operation: str, name: str) -> str:
        value = find_text(root, name)
        if not value:
            raise RemoteError(f"{operation} response has no {name}", body)
        return value

    # -- ServiceDeskPort -------------------------------------------------------

    async def login(self, username: str, password: str) -> str:
        try:
            root, body = await self._call(
                "login", [("username", username), ("password", password)]
            )
            return self._required(root, body, "login", "loginReturn")
        except AuthenticationError:
            raise
        except RemoteError as e:
            raise AuthenticationError(str(e), e.body) from e

    async def get_handle_for_userid(self, sid: str, user_id: str) -> str:
        root, body = await self._call(
            "getHandleForUserid", [("sid", sid), ("userID", user_id)]
        )
        return self._required(
            root, body, "getHandleForUserid", "getHandleForUseridReturn"
        )

    async def create_request(
        self,
        sid: str,
        creator_handle: str,
        attributes: Sequence[tuple[str, str]],
    ) -> TicketReference:
        root, body = await self._call(
            "createRequest",
            [
                ("sid", sid),
                ("creatorHandle", creator_handle),
                ("attrVals", flatten(attributes)),
                ("propertyValues", []),
                ("template", ""),
                ("attributes", []),
                ("newRequestHandle", ""),
                ("newRequestNumber", ""),
            ],
        )
        return TicketReference(
            handle=self._required(root, body, "createRequest", "newRequestHandle"),
            number=self._required(root, body, "createRequest", "newRequestNumber"),
        )

    async def update_object(
        self,
        sid: str,
        object_handle: str,
        attributes: Sequence[tuple[str, str]],
    ) -> str:
        root, _ = await self._call(
            "updateObject",
            [
                ("sid", sid),
                ("objectHandle", object_handle),
                ("attrVals", flatten(attributes)),
                ("attributes", [name for name, _ in attributes]),
            ],
        )
        return find_text(root, "updateObjectReturn") or ""
