"""
# Services Package

Business rules of the Account Service. A service validates input, enforces uniqueness and
referential rules, delegates persistence to its repository and publishes a domain event after
each successful write.

Services never raise HTTP errors; they raise the `account_service.exceptions` taxonomy and
return `None`/`False` when a record does not exist. Routes and RPC responders translate both.
"""
