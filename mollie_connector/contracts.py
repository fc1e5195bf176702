"""
Connector interface.

Lists only the verbs the Mollie API can back. Hosts that also expect
save / destroy / destroy_all / update_attributes get them from the concrete
connector, where they raise NotImplementedOperation.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Optional


class PaymentConnector(ABC):

    @abstractmethod
    async def create(self, model: str, data: Mapping[str, Any]) -> Optional[str]:
        """Create a remote record and return its id."""

    @abstractmethod
    async def find(self, model: str, id: str) -> Optional[Dict[str, Any]]:
        """Fetch one record, None when the API returns an empty body."""

    @abstractmethod
    async def exists(self, model: str, id: str) -> bool:
        ...

    @abstractmethod
    async def all(self, model: str, filter: Optional[Mapping[str, Any]] = None) -> List[Dict[str, Any]]:
        ...

    @abstractmethod
    async def count(self, model: str, where: Optional[Mapping[str, Any]] = None) -> int:
        ...

    @abstractmethod
    def to_data(self, model: str, data: Any) -> Dict[str, Any]:
        ...

    @abstractmethod
    def from_data(self, model: str, data: Any) -> Dict[str, Any]:
        ...
