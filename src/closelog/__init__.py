"""Project close logger for CAD host applications.

Tracks document lifecycle events and appends one row of project metrics to a
monthly CSV file whenever a project document closes.
"""

__version__ = "0.1.0"
