"""
Common helpers for talking to the CloudStack management API.

Configuration comes from CLOUDSTACK_* environment variables (a .env file
in the working directory is loaded first). Requests are signed with the
account's API key / secret key pair.
"""

import base64
import hashlib
import hmac
import logging
import os
from typing import Any, Dict, List, Optional
from urllib.parse import quote, urlencode

import requests
from dotenv import load_dotenv

from cloudstack_collector.exceptions import DecodeError, TransportError

log = logging.getLogger(__name__)

# --------------------------------------------------------------------
# Configuration
# --------------------------------------------------------------------

load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes")


def _env_list(name: str) -> List[str]:
    raw = os.getenv(name, "")
    return [item.strip() for item in raw.split(",") if item.strip()]


def load_config() -> Dict[str, Any]:
    """Read CLOUDSTACK_* settings from the environment."""
    return {
        "API_URL": os.getenv("CLOUDSTACK_API_URL", "http://localhost:8080/client/api"),
        "API_KEY": os.getenv("CLOUDSTACK_API_KEY", ""),
        "SECRET_KEY": os.getenv("CLOUDSTACK_SECRET_KEY", ""),
        "VERIFY_SSL": _env_bool("CLOUDSTACK_VERIFY_SSL", "true"),
        "REQUEST_TIMEOUT": os.getenv("CLOUDSTACK_REQUEST_TIMEOUT", "30"),
        "PAGE_SIZE": os.getenv("CLOUDSTACK_PAGE_SIZE", "500"),
        "ALL_DOMAINS": _env_bool("CLOUDSTACK_ALL_DOMAINS", "true"),
        "DOMAIN_IDS": _env_list("CLOUDSTACK_DOMAIN_IDS"),
        "POLL_INTERVAL": os.getenv("CLOUDSTACK_POLL_INTERVAL", "60"),
        "LOG_LEVEL": os.getenv("LOG_LEVEL", "INFO"),
        "JSON_LOGS": _env_bool("JSON_LOGS", "false"),
    }


CFG = load_config()


# --------------------------------------------------------------------
# Request signing
# --------------------------------------------------------------------


def _encode(value: Any) -> str:
    return quote(str(value), safe="*")


def sign_params(params: Dict[str, Any], secret_key: str) -> str:
    """
    Compute the CloudStack request signature.

    Parameters are sorted by key, values URL-encoded (space as %20),
    the whole query string lower-cased, HMAC-SHA1'd with the secret
    key and base64-encoded.
    """
    query = "&".join(f"{k}={_encode(params[k])}" for k in sorted(params))
    digest = hmac.new(
        secret_key.encode("utf-8"),
        query.lower().encode("utf-8"),
        hashlib.sha1,
    ).digest()
    return base64.b64encode(digest).decode("ascii")


# --------------------------------------------------------------------
# API client
# --------------------------------------------------------------------


class CloudStackClient:
    def __init__(
        self,
        api_url: str,
        api_key: str,
        secret_key: str,
        verify_ssl: bool = True,
        timeout: int = 30,
        page_size: int = 500,
        session: Optional[requests.Session] = None,
    ):
        self.api_url = api_url
        self.api_key = api_key
        self.secret_key = secret_key
        self.timeout = timeout
        self.page_size = page_size
        self.session = session or requests.Session()
        self.session.verify = verify_ssl

    @classmethod
    def from_config(cls, cfg: Optional[Dict[str, Any]] = None) -> "CloudStackClient":
        cfg = cfg or CFG
        return cls(
            api_url=cfg["API_URL"],
            api_key=cfg["API_KEY"],
            secret_key=cfg["SECRET_KEY"],
            verify_ssl=cfg["VERIFY_SSL"],
            timeout=int(cfg["REQUEST_TIMEOUT"]),
            page_size=int(cfg["PAGE_SIZE"]),
        )

    def request(self, command: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Issue one signed GET and return the decoded "<command>response" body.

        Raises TransportError on network/HTTP failures and DecodeError when
        the body is not JSON or the response key is missing.
        """
        query: Dict[str, Any] = {k: v for k, v in (params or {}).items() if v is not None}
        query.update({"command": command, "response": "json", "apikey": self.api_key})
        query["signature"] = sign_params(query, self.secret_key)

        log.debug("CloudStack %s %s", command,
                  {k: v for k, v in query.items() if k not in ("signature", "apikey")})
        try:
            resp = self.session.get(
                self.api_url,
                params=urlencode(query, safe="*", quote_via=quote),
                timeout=self.timeout,
            )
            resp.raise_for_status()
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            raise TransportError(f"{command} failed", command=command,
                                 status_code=status, original_error=e) from e
        except requests.RequestException as e:
            raise TransportError(f"{command} failed", command=command, original_error=e) from e

        try:
            data = resp.json()
        except ValueError as e:
            raise DecodeError(f"{command} returned a non-JSON body: {e}", command=command) from e

        key = f"{command.lower()}response"
        if not isinstance(data, dict) or not isinstance(data.get(key), dict):
            raise DecodeError(f"{command} response is missing '{key}'", command=command)
        return data[key]

    def paginate(self, command: str, item_key: str,
                 extra_params: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        """
        Page/pagesize pagination for list* commands.
        CloudStack drops item_key entirely when a page is empty.
        """
        out: List[Dict[str, Any]] = []
        page = 1
        while True:
            params = {**(extra_params or {}), "page": page, "pagesize": self.page_size}
            body = self.request(command, params)
            items = body.get(item_key, [])
            if not isinstance(items, list):
                raise DecodeError(f"{command} '{item_key}' is not a list", command=command)
            out.extend(items)
            if len(items) < self.page_size:
                break
            page += 1
        return out

    # ----------------------------------------------------------------
    # Commands used by the collector
    # ----------------------------------------------------------------

    def list_domains(self, list_all: bool = True) -> List[Dict[str, Any]]:
        params = {"listall": "true"} if list_all else {}
        return self.paginate("listDomains", "domain", params)

    def list_virtual_machines(self, domain_id: str) -> List[Dict[str, Any]]:
        return self.paginate("listVirtualMachines", "virtualmachine", {"domainid": domain_id})

    def update_resource_count(self, domain_id: str) -> Dict[str, Any]:
        return self.request("updateResourceCount", {"domainid": domain_id})
