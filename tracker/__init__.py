"""Project tracker: projects, members, functions, milestones, tickets and audit events."""

__version__ = "1.0.0"
