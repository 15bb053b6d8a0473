"""
Shared, cross-cutting code for the data-access layer.

`core/` should contain small building blocks that multiple features use
(ids, errors, guards, store backends, settings, logging). Keep feature-specific
schemas and business logic in the corresponding feature package (e.g. `tasks/`).
"""
