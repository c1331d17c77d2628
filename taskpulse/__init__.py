"""taskpulse - personal task tracking with productivity insights."""
