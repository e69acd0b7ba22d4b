"""Server side of recordsync: database, storage, migration, scheduler and HTTP API."""
