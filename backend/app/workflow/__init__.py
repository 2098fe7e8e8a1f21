"""Pure workflow decision functions shared by courses, degrees and enrollments.

Nothing in this package performs I/O; services load rows, ask these functions
for a decision and persist the result themselves.
"""
