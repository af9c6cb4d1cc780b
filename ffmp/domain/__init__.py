"""
This package contains the core domain models of FFMP.

The domain layer describes a batch run in plain value objects, independent of the
CLI, the process execution machinery and the file system.

Modules:
    exceptions.py: Custom exception types for the error conditions that stop a
                   run before any job is dispatched.
    models.py: The `Configuration` record, the `Job` unit of work, the outcome
               types returned by the process runner and the orchestrator.
"""
