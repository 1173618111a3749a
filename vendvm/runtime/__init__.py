"""
vendvm.runtime — host internals.

- context       : Msg envelope, address helpers
- journal       : nested checkpoints over balances/storage/code/logs
- storage_api   : per-frame StorageView
- events_api    : event validation and canonical receipt projection
- treasury_api  : native balance movements
- contract      : Contract base class, entrypoint/view decorators
- host          : Chain (deploy / transact / call / send / snapshot)

Submodules are imported explicitly by callers; this package marker stays
import-free so the host can be loaded without cycles.
"""
