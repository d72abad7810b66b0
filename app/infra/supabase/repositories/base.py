"""Base repository with common CRUD operations"""
from typing import Generic, TypeVar, Type, Optional, List, Dict, Any, Union
from pydantic import BaseModel
from supabase import Client

T = TypeVar('T', bound=BaseModel)
CreateT = TypeVar('CreateT', bound=BaseModel)
UpdateT = TypeVar('UpdateT', bound=BaseModel)

RecordId = Union[int, str]


class BaseRepository(Generic[T, CreateT, UpdateT]):
    """
    Base repository providing common database operations.
    Hides Supabase implementation details from the rest of the application.
    """
    
    def __init__(self, client: Client, table_name: str, model_class: Type[T]):
        self._client = client
        self._table_name = table_name
        self._model_class = model_class
    
    def _to_model(self, data: Dict[str, Any]) -> T:
        """Convert database dict to domain model"""
        return self._model_class(**data)
    
    def _to_models(self, data: List[Dict[str, Any]]) -> List[T]:
        """Convert list of database dicts to domain models"""
        return [self._to_model(item) for item in data]
    
    async def find_by_id(self, id: RecordId) -> Optional[T]:
        """Find a single record by ID"""
        response = self._client.table(self._table_name).select("*").eq("id", id).execute()
        
        if not response.data:
            return None
        
        return self._to_model(response.data[0])
    
    async def find_by_filters(
        self,
        filters: Dict[str, Any],
        limit: Optional[int] = None,
        order_by: Optional[str] = None,
        desc: bool = False,
    ) -> List[T]:
        """Find records matching equality filters"""
        query = self._client.table(self._table_name).select("*")
        
        for key, value in filters.items():
            query = query.eq(key, value)
        
        if order_by:
            query = query.order(order_by, desc=desc)
        
        if limit:
            query = query.limit(limit)
        
        response = query.execute()
        return self._to_models(response.data)
    
    async def find_one(self, filters: Dict[str, Any]) -> Optional[T]:
        """Find the first record matching filters"""
        results = await self.find_by_filters(filters, limit=1)
        return results[0] if results else None
    
    async def create(self, data: CreateT) -> T:
        """Create a new record"""
        data_dict = data.model_dump(exclude_unset=True, mode='json')
        response = self._client.table(self._table_name).insert(data_dict).execute()
        
        if not response.data:
            raise ValueError("Failed to create record")
        
        return self._to_model(response.data[0])
    
    async def upsert(self, data: CreateT, on_conflict: str) -> T:
        """Insert a record or update the row that conflicts on `on_conflict`"""
        data_dict = data.model_dump(mode='json')
        response = (
            self._client.table(self._table_name)
            .upsert(data_dict, on_conflict=on_conflict)
            .execute()
        )
        
        if not response.data:
            raise ValueError("Failed to upsert record")
        
        return self._to_model(response.data[0])
    
    async def update(self, id: RecordId, data: UpdateT) -> Optional[T]:
        """Update a record by ID"""
        data_dict = data.model_dump(exclude_unset=True, mode='json')
        
        if not data_dict:
            # No fields to update
            return await self.find_by_id(id)
        
        response = self._client.table(self._table_name).update(data_dict).eq("id", id).execute()
        
        if not response.data:
            return None
        
        return self._to_model(response.data[0])
    
    async def count(self, filters: Optional[Dict[str, Any]] = None) -> int:
        """Count records matching filters"""
        query = self._client.table(self._table_name).select("id", count="exact")
        
        if filters:
            for key, value in filters.items():
                query = query.eq(key, value)
        
        response = query.execute()
        return response.count or 0
