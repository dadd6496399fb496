"""Client domain service."""

from typing import Optional

from sitebooks.database.base import Database
from sitebooks.domain.entities import Client as ClientEntity
from sitebooks.domain.errors import ConflictError, ValidationError


class ClientService:
    """Service for managing clients."""

    def __init__(self, db: Database):
        self.db = db

    def create_client(self, client_name: str, company_name: Optional[str] = None) -> int:
        """Create a new client.

        Raises:
            ValidationError: If the name is empty
            ConflictError: If a client with the same name exists
        """
        client_name = (client_name or "").strip()
        if not client_name:
            raise ValidationError("Client name cannot be empty")
        for client in self.db.list_clients():
            if client.client_name.strip().lower() == client_name.lower():
                raise ConflictError(f"Client with name '{client_name}' already exists")
        return self.db.create_client(client_name=client_name, company_name=company_name)

    def get_client(self, client_id: int) -> Optional[ClientEntity]:
        return self.db.get_client(client_id)

    def list_clients(self) -> list[ClientEntity]:
        return self.db.list_clients()
