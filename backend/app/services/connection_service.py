import logging
from typing import Any, Dict

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.connectors.odoo_connector import OdooConnector
from app.exceptions import AuthenticationFailure, PersistenceError
from app.models.connection import Connection
from app.schemas.connection import Company, ConnectionCreate, ConnectionParams, ConnectionTestResult
from app.services.normalizer import many2one
from app.services.store import SyncStore
from app.utils.encrypt import encrypt_data

log = logging.getLogger(__name__)

CONNECTION_STATUSES = ('connected', 'disabled', 'error')


async def authenticate_and_list_companies(params: ConnectionParams) -> Dict[str, Any]:
    """
    Connection test: authenticate with plaintext credentials and list the
    companies visible to that user.

    Raises AuthenticationFailure when Odoo rejects the credentials.
    """
    connector = OdooConnector({
        "base_url": params.url,
        "database": params.database,
        "username": params.username,
        "api_key": params.api_key,
    })
    try:
        uid = await connector.authenticate()
        if not uid:
            raise AuthenticationFailure("Authentication failed. Invalid credentials.", {"database": params.database})

        records = await connector.fetch_companies(uid)
        companies = [
            Company(id=r["id"], name=r.get("name") or "", currency=many2one(r.get("currency_id"))[1])
            for r in records
        ]
        log.info(f"Connection test OK for {params.url} ({params.database}): uid {uid}, {len(companies)} companies")
        return ConnectionTestResult(user_id=uid, companies=companies).model_dump()
    finally:
        await connector.close()


def _save(db: Session, connection: Connection, action: str) -> Connection:
    try:
        db.add(connection)
        db.commit()
        db.refresh(connection)
    except SQLAlchemyError as e:
        db.rollback()
        raise PersistenceError(f"Could not {action} connection: {e}") from e
    return connection


def register_connection(db: Session, params: ConnectionCreate) -> Connection:
    """Store a new connection with its API key encrypted."""
    connection = Connection(
        name=params.name,
        base_url=params.url,
        database=params.database,
        username=params.username,
        api_key=encrypt_data(params.api_key),
        odoo_version=params.odoo_version,
        company_ids=params.company_ids,
        status='connected'
    )
    connection = _save(db, connection, "register")
    log.info(f"Registered connection {connection.id} ({connection.name})")
    return connection


def rotate_credential(db: Session, connection_id: int, api_key: str) -> Connection:
    if not api_key:
        raise ValueError("API key must not be empty")
    connection = SyncStore(db).get_connection(connection_id)
    connection.api_key = encrypt_data(api_key)
    connection = _save(db, connection, "update")
    log.info(f"Rotated API key of connection {connection_id}")
    return connection


def set_status(db: Session, connection_id: int, status: str) -> Connection:
    if status not in CONNECTION_STATUSES:
        raise ValueError(f"Unknown connection status: {status}")
    connection = SyncStore(db).get_connection(connection_id)
    connection.status = status
    connection = _save(db, connection, "update")
    log.info(f"Connection {connection_id} status set to '{status}'")
    return connection
