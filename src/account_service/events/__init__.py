"""
# Events Package

Message-bus integration over Redis.

- **`event_bus`**: `RedisEventBus` (event publication, RPC responders and RPC client).
- **`integration_events`**: the domain events published after successful writes.
- **`provider_task`**: `ProviderEventBusTask`, which exposes the read operations as RPC resources.
"""
