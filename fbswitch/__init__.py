"""Firebase configuration switcher.

Switches an application between Firebase projects and copies a user
record from one project to another through a secondary named connection.
"""

__version__ = "1.0.0"
