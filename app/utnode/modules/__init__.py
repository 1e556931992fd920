"""
Feature modules live under this package.

Each module owns its model and its resource descriptor; routing, validation
and persistence come from the shared CRUD blueprint (app.utnode.crud).
"""
