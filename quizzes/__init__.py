"""Quiz authoring, branching and scoring application.

The engine modules in ``services`` (conditions, scoring, SCARF) work on
plain dataclasses.  The loader, submission and template services bridge
them to the ORM, and the views and management commands expose them.
"""
