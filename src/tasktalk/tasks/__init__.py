"""
Task subsystem.

Components:
- task_models.py: data structures (Task, TaskStatus, TaskPriority)
- task_store.py: SQLite-backed storage implementing the TaskRepo port
"""
