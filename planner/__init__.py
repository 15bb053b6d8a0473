"""
planner: authorization-scoped data access for users, lists, tags, sticky notes and tasks.

Build a service container with `planner.container.build_services(stores)`;
stores come from `planner.backends` (PostgreSQL or in-memory).
"""
