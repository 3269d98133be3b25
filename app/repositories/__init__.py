"""
Repository package: data access over the async SQLAlchemy session.

- `UserRepository` is the credential store the auth gate resolves principals
  through.
- `MovieRepository` owns catalog queries (filters, pagination, aggregates).

Routers get instances through `app.core.dependencies`, so tests can swap them.
"""
