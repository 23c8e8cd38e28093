#!/usr/bin/env python
"""
Seed script for creating a demo Odoo connection.
Run with: cd backend; python scripts/seed_connections.py
Requires DATABASE_URL and ENCRYPTION_KEY in .env.
"""

import os
import sys

# Add app to path
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from app.database import SessionLocal
from app.models.connection import Connection
from app.schemas.connection import ConnectionCreate
from app.services.connection_service import register_connection


def seed_connections():
    db = SessionLocal()
    try:
        if db.query(Connection).filter(Connection.name == 'Demo Odoo').first():
            print("Demo connection already exists. Skipping seed.")
            return

        connection = register_connection(db, ConnectionCreate(
            name='Demo Odoo',
            base_url=os.getenv('ODOO_URL', 'https://odoo.example.com'),
            database=os.getenv('ODOO_DB', 'demo'),
            username=os.getenv('ODOO_USERNAME', 'admin@example.com'),
            api_key=os.getenv('ODOO_API_KEY', 'demo-api-key'),
            odoo_version='17.0',
            company_ids=None
        ))
        print(f"Created demo Odoo connection #{connection.id}: {connection.name}")
        print("\nNext steps:")
        print("1. Test it: pos-sync test-connection --url ... --database ... --username ... --api-key ...")
        print(f"2. Run a manual sync: pos-sync sync {connection.id} --date YYYY-MM-DD")
    except Exception as e:
        db.rollback()
        print(f"Error seeding connection: {e}")
    finally:
        db.close()


if __name__ == '__main__':
    seed_connections()
