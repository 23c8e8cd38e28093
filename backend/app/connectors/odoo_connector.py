import logging
from typing import Dict, Any, List, Optional

from app.connectors.base import BaseConnector
from app.connectors.xmlrpc_transport import XmlRpcTransport
from app.config import settings
from app.exceptions import RpcFault, TransportError

log = logging.getLogger(__name__)


class OdooConnector(BaseConnector):
    """
    Connector for Odoo over the external XML-RPC API.

    Config keys: base_url, database, username, api_key (already decrypted),
    plus optional timeout and max_retries.
    """

    def __init__(self, config: Dict[str, Any], transport: Optional[XmlRpcTransport] = None):
        super().__init__(config)
        self.base_url = self.config["base_url"]
        self.database = self.config["database"]
        self.username = self.config["username"]
        self.api_key = self.config["api_key"]
        self.transport = transport or XmlRpcTransport(
            self.base_url,
            timeout=self.config.get("timeout", settings.rpc_timeout_seconds),
            max_retries=self.config.get("max_retries", settings.rpc_max_retries)
        )
        log.info(f"Odoo connector initialized with base URL: {self.base_url} (db: {self.database})")

    async def authenticate(self) -> int:
        """
        Calls common.authenticate. Odoo answers False for bad credentials,
        which is returned as 0 so callers can test for a falsy uid.
        """
        uid = await self.transport.call("common", "authenticate", [
            self.database,
            self.username,
            self.api_key,
            {}
        ])
        if not uid:
            log.warning(f"Odoo rejected credentials for '{self.username}' on {self.database}")
            return 0
        log.debug(f"Authenticated '{self.username}' on {self.database} as uid {uid}")
        return int(uid)

    async def execute(self, uid: int, model: str, method: str, args: List[Any], kwargs: Optional[Dict[str, Any]] = None) -> Any:
        """Calls object.execute_kw, the generic entry point for model methods."""
        log.trace(f"execute_kw {model}.{method} args={args} kwargs={kwargs}")
        return await self.transport.call("object", "execute_kw", [
            self.database,
            uid,
            self.api_key,
            model,
            method,
            args,
            kwargs or {}
        ])

    async def search_read(self, uid: int, model: str, domain: List[Any], fields: List[str]) -> List[Dict[str, Any]]:
        records = await self.execute(uid, model, "search_read", [domain], {"fields": fields})
        log.debug(f"search_read {model}: {len(records or [])} records")
        return records or []

    async def fetch_companies(self, uid: int) -> List[Dict[str, Any]]:
        return await self.search_read(uid, "res.company", [], ["id", "name", "currency_id"])

    async def validate_connection(self) -> bool:
        try:
            return bool(await self.authenticate())
        except (RpcFault, TransportError) as e:
            log.error(f"Odoo connection validation failed: {e}")
            return False

    async def close(self) -> None:
        await self.transport.close()
