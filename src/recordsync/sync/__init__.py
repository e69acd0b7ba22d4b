"""Sync engine.

Architecture:
    RecordService -> UploadQueue -> ObjectStorage
          |               |
          +-----> ReconciliationService <---- MigrationService / scheduler
                          |
                RecordStore <-> RemoteStore

Components:
- **entities**: per-entity configuration (field mapping, natural key, prefixes)
- **identifiers**: Unassigned / Placeholder / Confirmed remote references
- **reconcile**: the reconciliation protocol, one service per entity
- **upload_queue**: single-consumer queue of attachment transfers
- **records**: write path tying local writes, uploads and reconciliation together
"""
