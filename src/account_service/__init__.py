"""
# Account Service

A **FastAPI-based microservice for user account management**. It performs CRUD on the user
subtypes of the platform (children, educators, health professionals, families and third-party
applications) and on the institutions they belong to, persisting everything in MongoDB.

## Architecture Overview

```
┌─────────────────────────────────────────────────────────────┐
│                 Account Service Architecture                 │
├─────────────────────────────────────────────────────────────┤
│                                                              │
│  ┌──────────────┐        ┌──────────────────────────────┐   │
│  │   FastAPI    │        │   Event Bus (Redis)           │   │
│  │   Routers    │        │   - domain events (pub/sub)   │   │
│  └──────┬───────┘        │   - RPC providers (lists)     │   │
│         │                └──────────────┬───────────────┘   │
│         ▼                               ▼                    │
│  ┌──────────────────────────────────────────────────────┐   │
│  │          Services (validation, cascades, events)      │   │
│  └──────────────────────────┬───────────────────────────┘   │
│                             ▼                                │
│  ┌──────────────────────────────────────────────────────┐   │
│  │   Repositories (Query → Motor filter/sort/populate)   │   │
│  └──────────────────────────┬───────────────────────────┘   │
│                             ▼                                │
│                      ┌──────────────┐                        │
│                      │   MongoDB    │                        │
│                      └──────────────┘                        │
└─────────────────────────────────────────────────────────────┘
```

## Package Structure

- **`main`**: Application entry point and lifespan management
- **`config`**: Pydantic-based settings loaded from the environment or a `.env` file
- **`container`**: Explicit construction of repositories, services and the event bus
- **`database`**: MongoDB connection management and index creation
- **`models`**: Pydantic domain models (users, institutions, children groups)
- **`repositories`**: Query object, query translator and Motor-backed repositories
- **`services`**: Business rules for each entity
- **`events`**: Redis event bus, domain events and RPC providers
- **`routes`**: REST endpoints under `/v1`
"""

__version__ = "1.0.0"
