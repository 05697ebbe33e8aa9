"""
Task subsystem.

Components:
- task_models.py: data structures (Task, TaskStatus, StoreSnapshot) and errors
- ledger.py: penalty ledger (accrue / reverse, never negative)
- task_store.py: in-memory store with the lifecycle transitions
- task_scheduler.py: deadline sweeper + asyncio repeating timer
- persistence.py: snapshot codec and the load/save gateway
- task_api.py: input parsing and display helpers used by front-ends
"""
