"""
# Database Package

Persistence layer for the Account Service, built on **Motor** (async MongoDB driver).

## Collections

| Collection | Content |
|------------|---------|
| `users` | Every user subtype, discriminated by `type` |
| `institutions` | Institutions users belong to |
| `children_groups` | Groups of children owned by educators and health professionals |

## Usage

```python
from account_service.database import db_manager

# In FastAPI lifespan startup
await db_manager.connect()
await db_manager.create_indexes()

users = db_manager.get_collection("users")

# In FastAPI lifespan shutdown
await db_manager.disconnect()
```

## Module Attributes

Attributes:
    db_manager (DatabaseManager): The global singleton instance for database access.
    DatabaseManager (class): The main manager class (exported for type hinting).
"""

from account_service.database.manager import (
    CHILDREN_GROUPS_COLLECTION,
    INSTITUTIONS_COLLECTION,
    USERS_COLLECTION,
    DatabaseManager,
    db_manager,
)

__all__ = [
    "DatabaseManager",
    "db_manager",
    "USERS_COLLECTION",
    "INSTITUTIONS_COLLECTION",
    "CHILDREN_GROUPS_COLLECTION",
]
